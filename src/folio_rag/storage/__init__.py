"""
Storage layer: flattened line store and transcript compression.
"""

from folio_rag.storage.compression import (
    compress_data,
    decompress_data,
    is_compressed,
    read_transcript_bytes,
)
from folio_rag.storage.line_store import LineStore

__all__ = [
    "LineStore",
    "compress_data",
    "decompress_data",
    "is_compressed",
    "read_transcript_bytes",
]
