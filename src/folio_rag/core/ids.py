"""
Deterministic fingerprints for Folio RAG.

Fingerprint Policy:
- transcript fingerprint: xxhash64 of the canonical transcript JSON
  (sorted keys, compact separators, UTF-8). Key order and whitespace in the
  source file do not change it; any change to text, numbering or geometry does.
"""

import json
from typing import Any, Mapping

import xxhash


def canonical_json(data: Mapping[str, Any]) -> bytes:
    """
    Serialize a transcript mapping to canonical bytes.

    Args:
        data: Parsed transcript mapping

    Returns:
        UTF-8 encoded JSON with sorted keys and no insignificant whitespace
    """
    return json.dumps(
        data, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def transcript_fingerprint(data: Mapping[str, Any]) -> str:
    """
    Generate a stable fingerprint for a parsed transcript.

    Args:
        data: Parsed transcript mapping

    Returns:
        16-character hex digest
    """
    return xxhash.xxh64(canonical_json(data)).hexdigest()
