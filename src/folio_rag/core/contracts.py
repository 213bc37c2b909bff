"""
Core data structures (dataclasses) for Folio RAG.

All core data structures are defined as explicit dataclasses. Everything built
from a transcript is frozen; the index never hands out mutable references.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass
class Config:
    """Configuration for index building and context assembly."""

    # Context budget
    context_budget: int = 25000  # max characters of assembled context
    annotation_cap: int = 2000  # annotations dropped entirely at or above this
    advisory_cap: int = 1500  # index-derived location notes cut to this length

    # Occurrence lookup
    max_occurrences: int = 3
    occurrence_radius_lines: int = 8
    heading_radius_lines: int = 20
    max_window_anchors: int = 10  # anchors merged into one rendered window
    max_fragment_length: int = 200  # fragments truncated before search
    snippet_chars: int = 200
    occurrence_window_chars: int = 1000
    heading_window_chars: int = 6000
    line_separator: str = ""  # joins line texts when rendering a window

    # Raw-text windows (characters either side of a hit)
    excerpt_radius_chars: int = 5000
    quoted_radius_chars: int = 3000
    reference_radius_chars: int = 2000
    rename_radius_chars: int = 2000

    # Assembly policy thresholds (heuristics, tune freely)
    mention_fill_ratio: float = 0.7
    head_ratio: float = 0.7
    short_context_chars: int = 1000
    very_short_context_chars: int = 500
    top_k_blocks: int = 3
    max_keywords: int = 10

    # Token index
    exact_key_cap: int = 50
    word_key_cap: int = 100
    max_exact_key_length: int = 200
    max_tokens_per_line: int = 10

    # Structure detection
    title_max_length: int = 150


@dataclass(frozen=True)
class Region:
    """Bounding box of a line on its page image."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class TranscriptLine:
    """A line as it appears in the source transcript (page-local)."""

    text: str
    line_number: int  # position reported by the transcript, not global
    column: int = 0
    region: Optional[Region] = None


@dataclass(frozen=True)
class Page:
    """A transcript page: its number and its lines in source order."""

    page_number: int
    lines: Tuple[TranscriptLine, ...]
    image_id: Optional[str] = None


@dataclass(frozen=True)
class Document:
    """
    A loaded page-structured transcript.

    Pages keep source order. The fingerprint is an xxhash64 digest of the
    canonical transcript JSON, so two loads of the same transcript compare equal.
    """

    pages: Tuple[Page, ...]
    source: str = "<memory>"
    fingerprint: str = ""

    @property
    def total_lines(self) -> int:
        return sum(len(page.lines) for page in self.pages)


@dataclass(frozen=True)
class Line:
    """
    A flattened line record.

    index is the 0-based global position assigned when the document is
    flattened; it is strictly increasing across pages.
    """

    text: str
    index: int
    page_number: int
    line_number: int
    column: int = 0
    region: Optional[Region] = None


@dataclass(frozen=True)
class Heading:
    """A detected chapter/section boundary."""

    title: str
    line_index: int
    page_number: int


@dataclass(frozen=True)
class HeadingMatch:
    """A heading returned by a heading query, with its rendered surroundings."""

    heading: Heading
    context: str


@dataclass(frozen=True)
class Occurrence:
    """A located line with a bounded snippet and context window."""

    line_index: int
    page_number: int
    text: str  # line snippet
    context: str  # rendered window around the line


@dataclass(frozen=True)
class DocumentStructure:
    """Summary of the detected structure of a document."""

    headings: Tuple[Heading, ...] = ()
    total_pages: int = 0
    total_lines: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headings": [
                {
                    "title": h.title,
                    "line_index": h.line_index,
                    "page_number": h.page_number,
                }
                for h in self.headings
            ],
            "total_pages": self.total_pages,
            "total_lines": self.total_lines,
        }


@dataclass
class AssembledContext:
    """
    Bounded context handed to the downstream generator.

    text never exceeds the budget it was assembled for. annotations is None when
    there were none or when they were too long to keep.
    """

    text: str
    annotations: Optional[str] = None
    strategy: str = "fallback"  # policy step that produced text

    def render(self) -> str:
        """Context followed by its annotations, as sent to the generator."""
        if self.annotations:
            return self.text + self.annotations
        return self.text


@dataclass(frozen=True)
class LoadResult:
    """Outcome of loading a transcript: a document or an error message."""

    document: Optional[Document] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.document is not None and self.error is None
