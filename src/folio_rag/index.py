"""
Document index: the caller-owned entry point of Folio RAG.

One DocumentIndex is created per transcript. It builds the line store, token
index and heading list at most once, behind a lock, and answers every query
with empty results while it is not loaded.
"""

import logging
import threading
from typing import List, Optional

from folio_rag.core.contracts import (
    AssembledContext,
    Config,
    Document,
    DocumentStructure,
    HeadingMatch,
    Occurrence,
)
from folio_rag.ingestion.parsers import TranscriptSource, load_transcript
from folio_rag.rag.context import ContextAssembler
from folio_rag.search.locator import OccurrenceLocator
from folio_rag.search.structure import StructureDetector
from folio_rag.search.token_index import TokenIndex
from folio_rag.storage.line_store import LineStore

logger = logging.getLogger(__name__)


class DocumentIndex:
    """
    Lazily built, read-only index over one page-structured transcript.

    The first query triggers the build. Concurrent first callers wait on the
    same lock and reuse its result. A failed build leaves the index unloaded:
    queries return empty defaults, and ensure_loaded() may be called to retry.
    """

    def __init__(self, source: Optional[TranscriptSource] = None, config: Optional[Config] = None):
        """
        Initialize document index (nothing is read until first use).

        Args:
            source: Transcript path, transcript mapping, or Document
            config: Configuration (defaults to Config())
        """
        self.source = source
        self.config = config or Config()
        self._lock = threading.Lock()
        self._attempted = False
        self._loaded = False
        self.last_error: Optional[str] = None

        self._document: Optional[Document] = None
        self._store = LineStore()
        self._token_index = TokenIndex(self.config)
        self._structure = StructureDetector(self.config)
        self._locator = OccurrenceLocator(self._store, self._token_index, self.config)

    def is_ready(self) -> bool:
        """True once the index has been built successfully."""
        return self._loaded

    @property
    def fingerprint(self) -> Optional[str]:
        return self._document.fingerprint if self._loaded else None

    def ensure_loaded(self, retry: bool = True) -> bool:
        """
        Build the index if it has not been built yet.

        Args:
            retry: Try again if an earlier attempt failed

        Returns:
            Whether the index is ready
        """
        if self._loaded:
            return True

        with self._lock:
            # Another caller may have finished while we waited
            if self._loaded:
                return True
            if self._attempted and not retry:
                return False
            self._attempted = True
            self._build()
            return self._loaded

    def _build(self):
        if self.source is None:
            self.last_error = "no transcript source"
            logger.warning("No transcript source, continuing without index")
            return

        result = load_transcript(self.source)
        if not result.ok:
            self.last_error = result.error
            logger.warning(
                "Transcript unavailable (will continue without index): %s", result.error
            )
            return

        store = LineStore.from_document(result.document)
        token_index = TokenIndex(self.config)
        token_index.build(store)
        structure = StructureDetector(self.config)
        structure.build(store)

        self._document = result.document
        self._store = store
        self._token_index = token_index
        self._structure = structure
        self._locator = OccurrenceLocator(store, token_index, self.config)
        self.last_error = None
        self._loaded = True

        logger.info(
            "Index loaded: %d lines, %d headings, %d pages",
            len(store),
            len(structure.headings),
            store.total_pages,
        )

    def locate_lines(self, fragment: str) -> List[int]:
        """
        Sorted unique global indices of lines matching a fragment.

        Args:
            fragment: Arbitrary text fragment

        Returns:
            List of line indices ([] if not loaded)
        """
        if not self.ensure_loaded(retry=False):
            return []
        return self._locator.find_lines(fragment)

    def windowed_occurrences(self, fragment: str, max_results: Optional[int] = None) -> List[Occurrence]:
        """
        Occurrences of a fragment, each with its own bounded context window.

        Args:
            fragment: Arbitrary text fragment
            max_results: Maximum occurrences (defaults to config.max_occurrences)

        Returns:
            List of Occurrence ([] if not loaded)
        """
        if not self.ensure_loaded(retry=False):
            return []
        return self._locator.windowed_occurrences(fragment, max_results)

    def find_heading(self, query: str) -> List[HeadingMatch]:
        """
        Headings matching a title fragment or chapter number.

        Args:
            query: Title fragment, phrase, or chapter number

        Returns:
            List of HeadingMatch ([] if not loaded)
        """
        if not self.ensure_loaded(retry=False):
            return []
        return self._structure.find(query, self._store)

    def document_structure(self) -> DocumentStructure:
        """Headings, page count and line count (all empty if not loaded)."""
        if not self.ensure_loaded(retry=False):
            return DocumentStructure()
        return DocumentStructure(
            headings=self._structure.headings,
            total_pages=self._store.total_pages,
            total_lines=len(self._store),
        )

    def context_around(self, anchors: List[int], radius: int) -> str:
        """Rendered lines around one or more line indices ("" if not loaded)."""
        if not self.ensure_loaded(retry=False):
            return ""
        return self._locator.context_around(anchors, radius)

    def page_for_line(self, index: int) -> Optional[int]:
        """Page number owning a global line index (None if unknown)."""
        if not self.ensure_loaded(retry=False):
            return None
        return self._store.page_for_line(index)

    def assemble_context(
        self,
        raw_text: str,
        instruction: str,
        excerpt: Optional[str] = None,
        budget: Optional[int] = None,
    ) -> AssembledContext:
        """
        Assemble budgeted context for an instruction using this index.

        Args:
            raw_text: Current document text
            instruction: Free-text instruction
            excerpt: Selected excerpt (optional)
            budget: Character budget (defaults to config.context_budget)

        Returns:
            AssembledContext
        """
        return ContextAssembler(self.config, self).assemble(raw_text, instruction, excerpt, budget)


def load_index(source: TranscriptSource, config: Optional[Config] = None) -> DocumentIndex:
    """
    Create a document index and build it immediately.

    Args:
        source: Transcript path, transcript mapping, or Document
        config: Configuration

    Returns:
        DocumentIndex (check is_ready(); a failed build is not an error)
    """
    index = DocumentIndex(source, config)
    index.ensure_loaded()
    return index
