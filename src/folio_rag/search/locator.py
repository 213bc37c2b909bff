"""
Occurrence lookup for Folio RAG.

Index-assisted, not index-only: exact and token postings give fast candidates,
and a linear containment scan over every line guarantees that no line
containing the fragment is missed.
"""

from typing import List, Optional

from folio_rag.core.contracts import Config, Occurrence
from folio_rag.search.token_index import TokenIndex
from folio_rag.storage.line_store import LineStore


class OccurrenceLocator:
    """Finds lines matching a fragment and renders bounded windows around them."""

    def __init__(self, store: LineStore, token_index: TokenIndex, config: Config):
        """
        Initialize locator.

        Args:
            store: Line store to search
            token_index: Built token index over the same store
            config: Configuration (fragment cap, radii, length caps)
        """
        self.store = store
        self.token_index = token_index
        self.tokenizer = token_index.tokenizer
        self.config = config

    def _prepare(self, fragment: str) -> str:
        return self.tokenizer.normalize(fragment)[: self.config.max_fragment_length]

    def find_lines(self, fragment: str) -> List[int]:
        """
        Find line indices matching a fragment.

        Union of exact-key postings, postings of each fragment token, and every
        line whose lowercased text contains the normalized fragment.

        Args:
            fragment: Arbitrary text fragment

        Returns:
            Sorted list of unique global line indices
        """
        normalized = self._prepare(fragment)
        if not normalized:
            return []

        results = set(self.token_index.lookup_exact(normalized))

        for token in self.tokenizer.query_tokens(normalized):
            results.update(self.token_index.lookup_token(token))

        for index, lowered in enumerate(self.store.lowered_texts):
            if normalized in lowered:
                results.add(index)

        return sorted(results)

    def windowed_occurrences(
        self, fragment: str, max_results: Optional[int] = None
    ) -> List[Occurrence]:
        """
        Locate a fragment and render one bounded window per located line.

        Args:
            fragment: Arbitrary text fragment
            max_results: Maximum occurrences (defaults to config.max_occurrences)

        Returns:
            List of Occurrence objects in line order
        """
        if not fragment or not fragment.strip():
            return []
        if max_results is None:
            max_results = self.config.max_occurrences

        occurrences = []
        for index in self.find_lines(fragment)[:max_results]:
            if not self.store.contains(index):
                continue
            line = self.store[index]
            occurrences.append(
                Occurrence(
                    line_index=index,
                    page_number=line.page_number,
                    text=line.text[: self.config.snippet_chars],
                    context=self.context_around(
                        [index], self.config.occurrence_radius_lines
                    )[: self.config.occurrence_window_chars],
                )
            )

        return occurrences

    def context_around(self, anchors: List[int], radius: int) -> str:
        """
        Render the lines around one or more anchors as a single window.

        Args:
            anchors: Global line indices
            radius: Lines on each side of each anchor

        Returns:
            Rendered text ("" if there are no anchors)
        """
        return self.store.render_window(
            anchors,
            radius,
            max_anchors=self.config.max_window_anchors,
            separator=self.config.line_separator,
        )
