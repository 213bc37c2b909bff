"""
Transcript ingestion: parsing and normalization.
"""

from folio_rag.ingestion.normalizer import collapse_newlines, normalize_key
from folio_rag.ingestion.parsers import (
    TranscriptError,
    load_transcript,
    parse_page,
    parse_transcript,
)

__all__ = [
    "load_transcript",
    "parse_transcript",
    "parse_page",
    "TranscriptError",
    "normalize_key",
    "collapse_newlines",
]
