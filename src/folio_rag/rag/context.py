"""
Context assembly for Folio RAG.

Builds one character-budgeted context string for an (instruction, optional
excerpt) pair. Strategies run in priority order; each later strategy runs only
while the context is still empty or short:

1. excerpt        - windows around every occurrence of the selected excerpt
2. mentions       - windows around quoted phrases and Chapter/Section references
3. chapter        - heading windows for a referenced chapter number
4. keywords       - best-scoring paragraph blocks for instruction keywords
5. rename         - raw-text heading patterns for "rename chapter N" requests
6. fallback       - head and tail of the document

When the index is loaded, advisory annotations (chapter heading locations,
excerpt locations, related lines) are added whatever strategy ran.

A strategy that fails is logged and skipped; assembly itself never raises.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, List, Optional

from folio_rag.core.contracts import AssembledContext, Config, HeadingMatch
from folio_rag.rag.intent import (
    chapter_number,
    extract_keywords,
    extract_mentions,
    is_rename_request,
    locate_mention,
)
from folio_rag.rag.markers import (
    CHAPTER_OCCURRENCE,
    DOCUMENT_CONTINUES,
    ELLIPSIS,
    LOCATION_CHANGE,
    TRUNCATED,
)
from folio_rag.rag.relevance import render_blocks, split_blocks, top_blocks
from folio_rag.search.structure import chapter_pattern, heading_patterns_for

if TYPE_CHECKING:
    from folio_rag.index import DocumentIndex

logger = logging.getLogger(__name__)

MAX_LISTED_HEADINGS = 5

# Advisory notes
MAX_LOCATED_EXCERPT = 500  # longer excerpts get no location note
_LONG_WORD = re.compile(r"\b\w{5,}\b")
RELATED_KEYWORDS = 2
RELATED_MAX_LINES = 30  # words on this many lines are too common to point at
RELATED_RADIUS_LINES = 3
RELATED_MAX_WINDOW = 300
RELATED_SNIPPET_CHARS = 150


@dataclass
class _Request:
    """Inputs and accumulated notes of one assembly call."""

    raw_text: str
    instruction: str
    excerpt: Optional[str]
    budget: int
    index_ready: bool
    notes: List[str] = field(default_factory=list)


def _window(text: str, start: int, end: int, radius: int) -> str:
    return text[max(0, start - radius) : min(len(text), end + radius)]


class ContextAssembler:
    """Runs the prioritized retrieval policy against raw text and an optional index."""

    def __init__(self, config: Optional[Config] = None, index: Optional["DocumentIndex"] = None):
        """
        Initialize assembler.

        Args:
            config: Configuration (budget, radii, thresholds)
            index: Document index over the same document (optional)
        """
        self.config = config or Config()
        self.index = index

    def assemble(
        self,
        raw_text: str,
        instruction: str,
        excerpt: Optional[str] = None,
        budget: Optional[int] = None,
    ) -> AssembledContext:
        """
        Assemble context for an instruction.

        Args:
            raw_text: Current document text
            instruction: Free-text instruction
            excerpt: Selected excerpt (optional)
            budget: Character budget (defaults to config.context_budget)

        Returns:
            AssembledContext whose text is at most `budget` characters
        """
        if budget is None:
            budget = self.config.context_budget
        budget = max(1, int(budget))

        index_ready = False
        if self.index is not None:
            index_ready = self.index.ensure_loaded(retry=False)

        request = _Request(
            raw_text=raw_text or "",
            instruction=instruction or "",
            excerpt=excerpt,
            budget=budget,
            index_ready=index_ready,
        )

        text = ""
        used: List[str] = []

        if excerpt and excerpt.strip():
            text = self._run("excerpt", self._from_excerpt, request)
            if text:
                used.append("excerpt")

        if not text:
            steps = (
                ("mentions", self._from_mentions, None),
                ("chapter", self._from_chapter, self.config.short_context_chars),
                ("keywords", self._from_keywords, self.config.short_context_chars),
                ("rename", self._from_rename, self.config.very_short_context_chars),
            )
            for name, step, threshold in steps:
                if threshold is not None and len(text) >= threshold:
                    continue
                produced = self._run(name, step, request)
                if produced:
                    text = text + ELLIPSIS + produced if text else produced
                    used.append(name)

        if not text:
            text = self._fallback(request)
            used.append("fallback")

        advisories = ""
        if index_ready:
            advisories = self._run("advisories", self._advisories, request)

        strategy = "+".join(used)
        logger.debug("Assembled %d chars via %s", len(text), strategy)

        return AssembledContext(
            text=self._truncate(text, budget),
            annotations=self._annotations(advisories, request.notes),
            strategy=strategy,
        )

    def _run(self, name: str, step: Callable[[_Request], str], request: _Request) -> str:
        try:
            return step(request)
        except Exception as e:
            logger.warning("Context strategy %s failed, skipping: %s", name, e)
            return ""

    def _from_excerpt(self, request: _Request) -> str:
        """Windows around each occurrence of the excerpt."""
        excerpt = request.excerpt or ""

        if request.index_ready:
            occurrences = self.index.windowed_occurrences(excerpt, self.config.max_occurrences)
            if occurrences:
                if len(occurrences) > 1:
                    request.notes.append(
                        f"IMPORTANT: The selected text appears {len(occurrences)} times "
                        "in the document. Make sure to update ALL occurrences if needed."
                    )
                return LOCATION_CHANGE.join(occ.context for occ in occurrences)

        # No index, or the index found nothing: plain substring search
        pos = request.raw_text.find(excerpt)
        if pos == -1:
            return ""
        return _window(
            request.raw_text, pos, pos + len(excerpt), self.config.excerpt_radius_chars
        )

    def _from_mentions(self, request: _Request) -> str:
        """Windows around quoted phrases and Chapter/Section references."""
        limit = request.budget * self.config.mention_fill_ratio
        parts: List[str] = []
        total = 0

        for mention in extract_mentions(request.instruction):
            if total > limit:
                break
            span = locate_mention(request.raw_text, mention)
            if span is None:
                continue
            radius = (
                self.config.quoted_radius_chars
                if mention.kind == "quoted"
                else self.config.reference_radius_chars
            )
            parts.append(_window(request.raw_text, span[0], span[1], radius))
            total = len(ELLIPSIS.join(parts))

        return ELLIPSIS.join(parts)

    def _from_chapter(self, request: _Request) -> str:
        """Heading windows for the chapter number named by the instruction."""
        number = chapter_number(request.instruction)
        if number is None or not request.index_ready:
            return ""

        matches = self._chapter_headings(number)
        if not matches:
            return ""

        request.notes.append(
            f"Found Chapter {number} at {len(matches)} location(s) in the document."
        )
        return CHAPTER_OCCURRENCE.join(match.context for match in matches)

    def _chapter_headings(self, number: str) -> List[HeadingMatch]:
        pattern = chapter_pattern(number)
        return [
            match
            for match in self.index.find_heading(f"Chapter {number}")
            if pattern.search(match.heading.title)
        ]

    def _from_keywords(self, request: _Request) -> str:
        """Best-scoring paragraph blocks for the instruction's keywords."""
        keywords = extract_keywords(request.instruction, self.config.max_keywords)
        if not keywords:
            return ""

        blocks = split_blocks(request.raw_text)
        selected = top_blocks(blocks, keywords, self.config.top_k_blocks)
        if not selected:
            return ""
        return render_blocks(blocks, selected, padding=1)

    def _from_rename(self, request: _Request) -> str:
        """Raw-text windows around every spelling of a chapter heading being renamed."""
        number = chapter_number(request.instruction)
        if number is None or not is_rename_request(request.instruction):
            return ""

        radius = self.config.rename_radius_chars
        for pattern in heading_patterns_for(number):
            parts: List[str] = []
            total = 0
            for match in pattern.finditer(request.raw_text):
                if total >= request.budget:
                    break
                window = _window(request.raw_text, match.start(), match.end(), radius)
                parts.append(window)
                total += len(window)
            if parts:
                return ELLIPSIS.join(parts)

        return ""

    def _fallback(self, request: _Request) -> str:
        """Whole document, or its head and tail when it exceeds the budget."""
        text = request.raw_text
        budget = request.budget
        if len(text) <= budget:
            return text

        room = budget - len(DOCUMENT_CONTINUES)
        if room <= 0:
            return text[:budget]
        head = int(room * self.config.head_ratio)
        tail = room - head
        return text[:head] + DOCUMENT_CONTINUES + (text[-tail:] if tail > 0 else "")

    def _truncate(self, text: str, budget: int) -> str:
        if len(text) <= budget:
            return text
        keep = budget - len(TRUNCATED)
        if keep <= 0:
            return text[:budget]
        return text[:keep] + TRUNCATED

    def _advisories(self, request: _Request) -> str:
        """
        Location notes derived from the index, whatever strategy produced the text.

        Lists the headings of a referenced chapter, the locations of the
        excerpt, and lines related to the instruction's long words. Each part
        is added only while the notes are under config.advisory_cap, and the
        result is cut to that cap.
        """
        cap = self.config.advisory_cap
        info = ""

        number = chapter_number(request.instruction)
        if number is not None:
            matches = self._chapter_headings(number)
            if matches:
                info += (
                    f"\n\n[Document Structure] Found {len(matches)} occurrence(s) "
                    f"of Chapter {number}:\n"
                )
                for m in matches[:MAX_LISTED_HEADINGS]:
                    info += (
                        f"- Page {m.heading.page_number}, Line {m.heading.line_index}: "
                        f"{m.heading.title[:60]}\n"
                    )
                if len(matches) > MAX_LISTED_HEADINGS:
                    info += f"... and {len(matches) - MAX_LISTED_HEADINGS} more occurrence(s)\n"

        excerpt = (request.excerpt or "").strip()
        if excerpt and len(excerpt) < MAX_LOCATED_EXCERPT and len(info) < cap:
            occurrences = self.index.windowed_occurrences(excerpt, self.config.max_occurrences)
            if occurrences:
                info += "\n\n[Selected Text Location] Found at:\n"
                info += "".join(
                    f"- Page {occ.page_number}, Line {occ.line_index}\n" for occ in occurrences
                )
                if len(occurrences) > 1:
                    info += (
                        f"IMPORTANT: This text appears {len(occurrences)} times. "
                        "Update ALL occurrences.\n"
                    )

        if len(info) < cap:
            related = self._related_content(request.instruction)
            if related and len(info) + len(related) < cap:
                info += "\n\n[Related Content]\n" + related

        return info[:cap]

    def _related_content(self, instruction: str) -> str:
        """Short windows around the first long instruction words that are not too common."""
        entries = []
        for keyword in _LONG_WORD.findall(instruction)[:RELATED_KEYWORDS]:
            lines = self.index.locate_lines(keyword)
            if not 0 < len(lines) < RELATED_MAX_LINES:
                continue
            window = self.index.context_around(lines[:2], RELATED_RADIUS_LINES)
            if 0 < len(window) < RELATED_MAX_WINDOW:
                entries.append(f"{keyword}: {window[:RELATED_SNIPPET_CHARS]}...")
        return "\n\n".join(entries)

    def _annotations(self, advisories: str, notes: List[str]) -> Optional[str]:
        annotations = advisories + "".join(f"\n\n{note}" for note in notes)
        if not annotations:
            return None
        if len(annotations) >= self.config.annotation_cap:
            logger.debug(
                "Dropping %d chars of annotations (cap %d)",
                len(annotations),
                self.config.annotation_cap,
            )
            return None
        return annotations


def assemble_context(
    raw_text: str,
    instruction: str,
    excerpt: Optional[str] = None,
    budget: Optional[int] = None,
    index: Optional["DocumentIndex"] = None,
    config: Optional[Config] = None,
) -> AssembledContext:
    """
    Assemble context in one call.

    Args:
        raw_text: Current document text
        instruction: Free-text instruction
        excerpt: Selected excerpt (optional)
        budget: Character budget (defaults to config.context_budget)
        index: Document index over the same document (optional)
        config: Configuration (defaults to the index's config, then Config())

    Returns:
        AssembledContext
    """
    if config is None and index is not None:
        config = index.config
    return ContextAssembler(config, index).assemble(raw_text, instruction, excerpt, budget)
