"""
Line store for Folio RAG.

Flattens a page-structured Document into one ordered sequence of Line records
with a stable 0-based global index.
"""

from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from folio_rag.core.contracts import Document, Line


class LineStore:
    """
    Read-only flat view of a document's lines.

    Lookup by global index is O(1). Each Line carries its page number, so
    page resolution is O(1) as well.
    """

    def __init__(self, lines: Sequence[Line] = (), page_numbers: Sequence[int] = ()):
        """
        Initialize line store.

        Args:
            lines: Line records, already in global index order
            page_numbers: Page numbers in source order (including empty pages)
        """
        self._lines: Tuple[Line, ...] = tuple(lines)
        self._page_numbers: Tuple[int, ...] = tuple(page_numbers)
        # Lowercased texts, scanned linearly by containment queries
        self._lowered: Tuple[str, ...] = tuple(line.text.lower() for line in self._lines)

    @classmethod
    def from_document(cls, document: Optional[Document]) -> "LineStore":
        """
        Flatten a document into a line store.

        Args:
            document: Loaded document (None yields an empty store)

        Returns:
            LineStore instance
        """
        if document is None:
            return cls()

        lines: List[Line] = []
        for page in document.pages:
            for source_line in page.lines:
                lines.append(
                    Line(
                        text=source_line.text,
                        index=len(lines),
                        page_number=page.page_number,
                        line_number=source_line.line_number,
                        column=source_line.column,
                        region=source_line.region,
                    )
                )

        return cls(lines, [page.page_number for page in document.pages])

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[Line]:
        return iter(self._lines)

    def __getitem__(self, index: int) -> Line:
        return self._lines[index]

    @property
    def total_pages(self) -> int:
        return len(self._page_numbers)

    @property
    def lowered_texts(self) -> Tuple[str, ...]:
        return self._lowered

    def contains(self, index: int) -> bool:
        """Check that a global index is within bounds."""
        return 0 <= index < len(self._lines)

    def page_for_line(self, index: int) -> Optional[int]:
        """
        Resolve the page that owns a global line index.

        Args:
            index: Global line index

        Returns:
            Page number, or None if the index is out of bounds
        """
        if not self.contains(index):
            return None
        return self._lines[index].page_number

    def render_window(
        self,
        anchors: Iterable[int],
        radius: int,
        max_anchors: int = 10,
        separator: str = "",
    ) -> str:
        """
        Render the lines surrounding a set of anchor indices.

        Ranges [anchor - radius, anchor + radius] of the first max_anchors
        anchors are merged, clipped to bounds and rendered in index order.

        Args:
            anchors: Global line indices to center windows on
            radius: Lines to include on each side of an anchor
            max_anchors: Anchors considered (the rest are ignored)
            separator: String placed between consecutive line texts

        Returns:
            Rendered window text ("" for no anchors)
        """
        total = len(self._lines)
        selected = set()

        for count, anchor in enumerate(anchors):
            if count >= max_anchors:
                break
            start = max(0, anchor - radius)
            end = min(total, anchor + radius + 1)
            selected.update(range(start, end))

        return separator.join(self._lines[i].text for i in sorted(selected))
