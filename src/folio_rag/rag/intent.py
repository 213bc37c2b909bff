"""
Instruction analysis: signals the context policy reads from a free-text
instruction (quoted phrases, chapter/section references, rename intent).
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from folio_rag.search.tokenizer import IndexTokenizer

# Quote pairs are consumed left to right; phrase length is checked afterwards
_QUOTED_PATTERNS: Tuple[Pattern, ...] = (
    re.compile(r'"([^"\n]*)"'),
    re.compile("“([^”\n]*)”"),
    # Single quotes only when not part of a word, so apostrophes are skipped
    re.compile(r"(?<!\w)'([^'\n]*)'(?!\w)"),
)
MIN_QUOTED_LENGTH = 2
MAX_QUOTED_LENGTH = 200

_REFERENCE = re.compile(r"\b(chapter|section)\s+(\d+(?:\.\d+)*)", re.IGNORECASE)
_CHAPTER = re.compile(r"chapter\s+(\d+)", re.IGNORECASE)

# A rename reads "<verb> ... <object> ... to|as <title>" within one line
_RENAME_VERB = re.compile(r"change|update|edit|rename", re.IGNORECASE)
_RENAME_OBJECT = re.compile(r"chapter|section|title", re.IGNORECASE)
_RENAME_LINK = re.compile(r"(?:to|as)\s+", re.IGNORECASE)
_RENAME_TITLE = re.compile(r"[\"']?([^\"']+)")

_KEYWORD_TOKENIZER = IndexTokenizer()


@dataclass(frozen=True)
class Mention:
    """Something the instruction names explicitly."""

    text: str
    kind: str  # "quoted" or "reference"


def extract_quoted(instruction: str) -> List[str]:
    """
    Extract quoted phrases in order of appearance.

    Straight double quotes, curly double quotes and standalone single quotes
    are recognised. Duplicates (case-insensitive) are dropped.

    Args:
        instruction: Free-text instruction

    Returns:
        List of phrases without their quotes
    """
    found = []
    for pattern in _QUOTED_PATTERNS:
        for match in pattern.finditer(instruction):
            raw = match.group(1)
            if not MIN_QUOTED_LENGTH <= len(raw) <= MAX_QUOTED_LENGTH:
                continue
            phrase = raw.strip()
            if phrase:
                found.append((match.start(), phrase))

    found.sort(key=lambda item: item[0])
    return _dedupe(phrase for _, phrase in found)


def extract_references(instruction: str) -> List[str]:
    """
    Extract "Chapter N" / "Section N" references.

    Args:
        instruction: Free-text instruction

    Returns:
        Canonical references such as "Chapter 3" or "Section 2.1"
    """
    return _dedupe(
        f"{match.group(1).capitalize()} {match.group(2)}"
        for match in _REFERENCE.finditer(instruction)
    )


def extract_mentions(instruction: str) -> List[Mention]:
    """Quoted phrases first, then chapter/section references."""
    mentions = [Mention(text=q, kind="quoted") for q in extract_quoted(instruction)]
    mentions.extend(Mention(text=r, kind="reference") for r in extract_references(instruction))
    return mentions


def chapter_number(instruction: str) -> Optional[str]:
    """Number of the first "Chapter N" in the instruction, if any."""
    match = _CHAPTER.search(instruction)
    return match.group(1) if match else None


def is_rename_request(instruction: str) -> bool:
    """Check whether the instruction asks to retitle a chapter/section/title."""
    return rename_target(instruction) is not None


def rename_target(instruction: str) -> Optional[str]:
    """
    The new title requested by a rename instruction.

    Each line is scanned left to right: the first verb, then the first object
    word after it, then the last "to"/"as" after that which is followed by a
    title. Every search is a single forward pass over the line.

    Args:
        instruction: Free-text instruction

    Returns:
        Requested title without quotes, or None if this is not a rename
    """
    for line in instruction.splitlines():
        verb = _RENAME_VERB.search(line)
        if verb is None:
            continue
        target = _RENAME_OBJECT.search(line, verb.end())
        if target is None:
            continue

        links = list(_RENAME_LINK.finditer(line, target.end()))
        for link in reversed(links):
            title = _RENAME_TITLE.match(line, link.end())
            if title is not None:
                return title.group(1).strip()

    return None


def mention_pattern(mention: Mention) -> Pattern:
    """
    Compile a case-insensitive matcher for a mention.

    The mention text is escaped; references tolerate any whitespace between
    the word and the number and will not match a longer number.
    """
    if mention.kind == "reference":
        word, _, number = mention.text.partition(" ")
        return re.compile(
            re.escape(word) + r"\s+" + re.escape(number) + r"(?![\d.]*\d)",
            re.IGNORECASE,
        )
    return re.compile(re.escape(mention.text), re.IGNORECASE)


def locate_mention(text: str, mention: Mention) -> Optional[Tuple[int, int]]:
    """
    Find the first occurrence of a mention in raw text.

    A verbatim hit is preferred; otherwise a case-insensitive match.

    Args:
        text: Raw document text
        mention: Mention to locate

    Returns:
        (start, end) character span, or None if absent
    """
    if mention.kind == "quoted":
        pos = text.find(mention.text)
        if pos != -1:
            return pos, pos + len(mention.text)

    match = mention_pattern(mention).search(text)
    if match is None:
        return None
    return match.start(), match.end()


def _dedupe(items) -> List[str]:
    seen = set()
    result = []
    for item in items:
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result


def extract_keywords(instruction: str, max_keywords: int = 10) -> List[str]:
    """
    Keywords used to score paragraph blocks.

    Args:
        instruction: Free-text instruction
        max_keywords: Maximum number of keywords

    Returns:
        Lowercased keywords without stopwords, in order of first appearance
    """
    return _KEYWORD_TOKENIZER.keywords(instruction, max_keywords)
