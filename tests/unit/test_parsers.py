"""
Tests for transcript loading.
"""

import json
import tempfile
from pathlib import Path

import pytest

from folio_rag.core import Document
from folio_rag.ingestion.parsers import (
    TranscriptError,
    load_transcript,
    parse_region,
    parse_transcript,
)
from folio_rag.storage.compression import compress_data, is_compressed


def test_parse_transcript(sample_transcript):
    """Pages, lines and regions are parsed in order."""
    document = parse_transcript(sample_transcript)

    assert [page.page_number for page in document.pages] == [1, 2, 3]
    assert document.total_lines == 11
    assert document.pages[0].image_id == "img-1"
    assert document.pages[1].lines[0].text == "\\section*{Chapter 3: Origins}\n"
    assert document.fingerprint


def test_line_defaults():
    """Missing line numbers and columns get defaults."""
    document = parse_transcript({"pages": [{"page_number": 4, "lines": [{"text": "a"}, {"text": "b"}]}]})
    lines = document.pages[0].lines

    assert document.pages[0].page_number == 4
    assert [line.line_number for line in lines] == [1, 2]
    assert lines[0].column == 0
    assert lines[0].region is None


def test_parse_region_aliases():
    """Both coordinate spellings are accepted."""
    assert parse_region({"x": 1, "y": 2, "width": 3, "height": 4}).x == 1.0
    assert parse_region({"top_left_x": 5, "top_left_y": 6, "width": 3, "height": 4}).y == 6.0
    assert parse_region(None) is None
    with pytest.raises(TranscriptError):
        parse_region({"x": 1})


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"pages": "nope"},
        {"pages": [{"page": 1}]},
        {"pages": [{"page": True, "lines": []}]},
        {"pages": [{"page": 1, "lines": [{"line": 1}]}]},
        {"pages": [{"page": 1, "lines": ["text"]}]},
    ],
)
def test_malformed_transcripts(data):
    """Schema violations raise TranscriptError."""
    with pytest.raises(TranscriptError):
        parse_transcript(data)


def test_load_from_mapping_and_document(sample_transcript):
    """Mappings are parsed and Documents pass through unchanged."""
    result = load_transcript(sample_transcript)
    assert result.ok
    assert result.document.total_lines == 11

    document = Document(pages=())
    assert load_transcript(document).document is document


def test_load_json_file(sample_transcript):
    """Plain JSON files load and record their source."""
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / "book.json"
        path.write_text(json.dumps(sample_transcript))

        result = load_transcript(str(path))

        assert result.ok
        assert result.document.source == str(path)
        assert result.document.fingerprint == parse_transcript(sample_transcript).fingerprint


def test_load_compressed_file(sample_transcript):
    """zstd-compressed transcripts load like plain ones."""
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / "book.json.zst"
        data = compress_data(json.dumps(sample_transcript).encode("utf-8"))
        path.write_bytes(data)

        assert is_compressed(data)
        result = load_transcript(path)

        assert result.ok
        assert result.document.total_lines == 11


def test_load_missing_file():
    """A missing file is reported, not raised."""
    result = load_transcript("/nonexistent/book.json")

    assert not result.ok
    assert "not found" in result.error


def test_load_invalid_files():
    """Bad JSON and bad schema are reported through the result."""
    with tempfile.TemporaryDirectory() as temp_dir:
        bad_json = Path(temp_dir) / "bad.json"
        bad_json.write_text("{not json")
        bad_schema = Path(temp_dir) / "schema.json"
        bad_schema.write_text(json.dumps({"pages": [{"page": 1}]}))

        result = load_transcript(bad_json)
        assert not result.ok
        assert str(bad_json) in result.error

        result = load_transcript(bad_schema)
        assert not result.ok
        assert "lines" in result.error
