"""
Compression utilities for Folio RAG.

Transcripts may be stored zstd-compressed via the zstandard library.
"""

from pathlib import Path

import zstandard as zstd

ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"


def compress_data(data: bytes, level: int = 3) -> bytes:
    """
    Compress data using zstd.

    Args:
        data: Data to compress
        level: Compression level (1-22, default 3)

    Returns:
        Compressed data
    """
    cctx = zstd.ZstdCompressor(level=level)
    return cctx.compress(data)


def decompress_data(compressed_data: bytes) -> bytes:
    """
    Decompress data using zstd.

    Args:
        compressed_data: Compressed data

    Returns:
        Decompressed data
    """
    dctx = zstd.ZstdDecompressor()
    # Frames written by stream compressors may omit the content size
    return dctx.decompressobj().decompress(compressed_data)


def is_compressed(data: bytes) -> bool:
    """Check for the zstd frame magic number."""
    return data[:4] == ZSTD_MAGIC


def read_transcript_bytes(file_path: Path) -> bytes:
    """
    Read a transcript file, transparently decompressing zstd content.

    Args:
        file_path: Path to a .json or zstd-compressed transcript

    Returns:
        Raw (uncompressed) transcript bytes
    """
    data = Path(file_path).read_bytes()
    if is_compressed(data):
        return decompress_data(data)
    return data
