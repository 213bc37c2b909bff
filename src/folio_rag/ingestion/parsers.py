"""
Transcript parsers for Folio RAG.

A transcript is JSON shaped as::

    {"pages": [{"page": 1, "image_id": "...",
                "lines": [{"text": "...", "line": 1, "column": 0,
                           "region": {"top_left_x": 0, "top_left_y": 0,
                                      "width": 10, "height": 2}}]}]}

Loading never raises: every failure is reported through LoadResult.error.
"""

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from folio_rag.core.contracts import Document, LoadResult, Page, Region, TranscriptLine
from folio_rag.core.ids import transcript_fingerprint
from folio_rag.storage.compression import read_transcript_bytes

logger = logging.getLogger(__name__)

TranscriptSource = Union[str, Path, Mapping[str, Any], Document]


class TranscriptError(ValueError):
    """Raised when transcript data does not match the expected schema."""


def _as_int(value: Any, what: str) -> int:
    # bool is an int subclass but never a valid position
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TranscriptError(f"{what} must be a number, got {value!r}")
    return int(value)


def parse_region(data: Any) -> Optional[Region]:
    """
    Parse an optional line region.

    Accepts both {x, y, width, height} and {top_left_x, top_left_y, width, height}.

    Args:
        data: Region mapping or None

    Returns:
        Region or None if absent
    """
    if data is None:
        return None
    if not isinstance(data, Mapping):
        raise TranscriptError(f"region must be an object, got {type(data).__name__}")

    try:
        x = data["x"] if "x" in data else data["top_left_x"]
        y = data["y"] if "y" in data else data["top_left_y"]
        return Region(
            x=float(x),
            y=float(y),
            width=float(data["width"]),
            height=float(data["height"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise TranscriptError(f"invalid region {dict(data)!r}: {e}") from e


def parse_page(data: Any, position: int) -> Page:
    """
    Parse one page mapping.

    Args:
        data: Page mapping
        position: 0-based position of the page in the transcript (for errors)

    Returns:
        Page object
    """
    if not isinstance(data, Mapping):
        raise TranscriptError(f"page #{position} must be an object")

    raw_number = data.get("page", data.get("page_number"))
    page_number = _as_int(raw_number, f"page #{position} number")

    raw_lines = data.get("lines")
    if not isinstance(raw_lines, list):
        raise TranscriptError(f"page {page_number} has no lines list")

    lines = []
    for line_pos, raw_line in enumerate(raw_lines):
        if not isinstance(raw_line, Mapping):
            raise TranscriptError(f"page {page_number} line #{line_pos} must be an object")
        text = raw_line.get("text")
        if not isinstance(text, str):
            raise TranscriptError(f"page {page_number} line #{line_pos} has no text")

        lines.append(
            TranscriptLine(
                text=text,
                line_number=_as_int(raw_line.get("line", line_pos + 1), "line number"),
                column=_as_int(raw_line.get("column", 0), "column"),
                region=parse_region(raw_line.get("region")),
            )
        )

    image_id = data.get("image_id")
    return Page(
        page_number=page_number,
        lines=tuple(lines),
        image_id=str(image_id) if image_id is not None else None,
    )


def parse_transcript(data: Any, source: str = "<memory>") -> Document:
    """
    Parse a transcript mapping into a Document.

    Args:
        data: Decoded transcript JSON
        source: Where the data came from (for logging and errors)

    Returns:
        Document object

    Raises:
        TranscriptError: If the data does not match the transcript schema
    """
    if not isinstance(data, Mapping):
        raise TranscriptError("transcript must be a JSON object")
    raw_pages = data.get("pages")
    if not isinstance(raw_pages, list):
        raise TranscriptError("transcript has no pages list")

    pages = tuple(parse_page(raw_page, pos) for pos, raw_page in enumerate(raw_pages))

    return Document(
        pages=pages,
        source=source,
        fingerprint=transcript_fingerprint(data),
    )


def load_transcript(source: TranscriptSource) -> LoadResult:
    """
    Load a transcript from a mapping, a Document, or a (possibly zstd) JSON file.

    Args:
        source: Transcript mapping, Document, or path

    Returns:
        LoadResult with either the document or an error message
    """
    if isinstance(source, Document):
        return LoadResult(document=source)

    try:
        if isinstance(source, Mapping):
            return LoadResult(document=parse_transcript(source))

        file_path = Path(source)
        if not file_path.is_file():
            return LoadResult(error=f"transcript not found: {file_path}")

        data = json.loads(read_transcript_bytes(file_path).decode("utf-8"))
        return LoadResult(document=parse_transcript(data, source=str(file_path)))

    except Exception as e:
        # Covers schema errors, bad JSON, bad UTF-8 and zstd frame errors
        label = "<memory>" if isinstance(source, Mapping) else str(source)
        logger.warning("Error loading transcript %s: %s", label, e)
        return LoadResult(error=f"{label}: {e}")
