"""
Core contracts and fingerprints for Folio RAG.
"""

from folio_rag.core.contracts import (
    AssembledContext,
    Config,
    Document,
    DocumentStructure,
    Heading,
    HeadingMatch,
    Line,
    LoadResult,
    Occurrence,
    Page,
    Region,
    TranscriptLine,
)
from folio_rag.core.ids import canonical_json, transcript_fingerprint

__all__ = [
    "Config",
    "Region",
    "TranscriptLine",
    "Page",
    "Document",
    "Line",
    "Heading",
    "HeadingMatch",
    "Occurrence",
    "DocumentStructure",
    "AssembledContext",
    "LoadResult",
    "canonical_json",
    "transcript_fingerprint",
]
