"""
Structure detection for Folio RAG.

Headings are recognised by a fixed table of precompiled rules, evaluated once
per line while the index is built. Queries only read the resulting list.
"""

import re
from functools import lru_cache
from typing import List, Optional, Pattern, Tuple

from folio_rag.core.contracts import Config, Heading, HeadingMatch
from folio_rag.ingestion.normalizer import collapse_newlines
from folio_rag.storage.line_store import LineStore

HEADING_RULES: Tuple[Tuple[str, Pattern], ...] = (
    ("section-chapter", re.compile(r"\\section\*?\{[^}]*Chapter", re.IGNORECASE)),
    ("chapter", re.compile(r"\\chapter\*?\{", re.IGNORECASE)),
    ("section", re.compile(r"^\\section\*?\{", re.IGNORECASE)),
    ("chapter-number", re.compile(r"Chapter\s+\d+[^}]*\}", re.IGNORECASE)),
    ("markdown-chapter", re.compile(r"^#{1,6}\s+Chapter", re.IGNORECASE)),
    ("starred-section-chapter", re.compile(r"\\section\*\{Chapter\s+\d+")),
)

# Wrapper tokens removed from a heading line to get its title
_TITLE_WRAPPERS = re.compile(r"\\(?:section|chapter)\*?\{|\\title\{|\}", re.IGNORECASE)
_LEADING_HASHES = re.compile(r"^#{1,6}\s+")
_NUMBER = re.compile(r"(\d+)")

MIN_HEADING_LENGTH = 5
TITLE_PREFIX_LENGTH = 20


def classify_heading(text: str) -> Optional[str]:
    """
    Classify a line as a heading.

    Args:
        text: Raw line text

    Returns:
        Name of the first matching rule, or None if the line is not a heading
    """
    stripped = text.strip()
    if len(stripped) <= MIN_HEADING_LENGTH:
        return None
    for name, pattern in HEADING_RULES:
        if pattern.search(stripped):
            return name
    return None


def clean_title(text: str, max_length: int = 150) -> str:
    """
    Derive a display title from a heading line.

    Wrapper tokens and leading markdown hashes are removed, newlines collapsed
    and the result truncated. Falls back to the truncated raw text when
    nothing is left.

    Args:
        text: Raw heading line text
        max_length: Maximum title length

    Returns:
        Title string
    """
    stripped = text.strip()
    title = _TITLE_WRAPPERS.sub("", stripped).strip()
    title = _LEADING_HASHES.sub("", title)
    title = collapse_newlines(title).strip()[:max_length]
    return title or collapse_newlines(stripped)[:max_length]


def chapter_pattern(number: str) -> Pattern:
    """Case-insensitive "Chapter <number>" matcher that will not match a longer number."""
    return re.compile(r"chapter\s+" + re.escape(number) + r"(?!\d)", re.IGNORECASE)


class StructureDetector:
    """Detects chapter/section headings and answers heading queries."""

    def __init__(self, config: Config):
        """
        Initialize structure detector.

        Args:
            config: Configuration (title length, heading window radius and cap)
        """
        self.config = config
        self.headings: Tuple[Heading, ...] = ()

    def build(self, store: LineStore):
        """
        Scan a line store once and record its headings.

        Args:
            store: Line store to scan
        """
        found: List[Heading] = []
        for line in store:
            if classify_heading(line.text) is None:
                continue
            found.append(
                Heading(
                    title=clean_title(line.text, self.config.title_max_length),
                    line_index=line.index,
                    page_number=line.page_number,
                )
            )

        found.sort(key=lambda h: h.line_index)
        self.headings = tuple(found)

    def find(self, query: str, store: LineStore) -> List[HeadingMatch]:
        """
        Find headings matching a query.

        A heading matches if its title contains the query, or if the query
        contains the start of its title (both case-insensitive). Headings whose
        title names "Chapter <n>" for the first number in the query are added
        after those.

        Args:
            query: Title fragment, phrase containing a title, or chapter number
            store: Line store used to render heading context

        Returns:
            List of HeadingMatch in match order
        """
        normalized = query.strip().lower()
        if not normalized:
            return []

        matched: List[Heading] = []
        seen = set()

        for heading in self.headings:
            title = heading.title.lower()
            if normalized in title or title[:TITLE_PREFIX_LENGTH] in normalized:
                matched.append(heading)
                seen.add(heading.line_index)

        number_match = _NUMBER.search(normalized)
        if number_match:
            pattern = chapter_pattern(number_match.group(1))
            for heading in self.headings:
                if heading.line_index not in seen and pattern.search(heading.title):
                    matched.append(heading)
                    seen.add(heading.line_index)

        return [
            HeadingMatch(heading=heading, context=self.render_context(heading, store))
            for heading in matched
        ]

    def render_context(self, heading: Heading, store: LineStore) -> str:
        """Render the capped window of lines around a heading."""
        window = store.render_window(
            [heading.line_index],
            self.config.heading_radius_lines,
            separator=self.config.line_separator,
        )
        return window[: self.config.heading_window_chars]


@lru_cache(maxsize=64)
def heading_patterns_for(number: str) -> Tuple[Pattern, ...]:
    """
    Raw-text patterns for a chapter heading, most general first.

    Used directly on raw document text to find every spelling of a chapter
    heading (running text, LaTeX section wrapper, markdown heading).

    Args:
        number: Chapter number as it appears in the instruction

    Returns:
        Tuple of compiled case-insensitive patterns
    """
    n = re.escape(number) + r"(?!\d)"
    return (
        re.compile(r"Chapter\s*" + n + r"[^\n]*", re.IGNORECASE),
        re.compile(r"\\section\*?\{[^}]*Chapter\s*" + n + r"[^}]*\}", re.IGNORECASE),
        re.compile(r"#+\s*Chapter\s*" + n + r"[^\n]*", re.IGNORECASE),
    )
