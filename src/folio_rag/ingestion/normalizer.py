"""
Text normalization for Folio RAG.

Index keys and queries go through the same normalization so that a fragment
copied from a line always matches that line.
"""

import re

_NEWLINES = re.compile(r"\r\n|\r|\n")


def normalize_key(text: str) -> str:
    """
    Normalize text for index keys and lookups.

    - Strip leading/trailing whitespace
    - Lowercase

    Args:
        text: Line text or query fragment

    Returns:
        Normalized key
    """
    return text.strip().lower()


def collapse_newlines(text: str) -> str:
    """Replace every newline sequence with a single space."""
    return _NEWLINES.sub(" ", text)
