"""
Tests for flattening transcripts into the line store.
"""

from folio_rag.ingestion.parsers import parse_transcript
from folio_rag.storage.line_store import LineStore


def test_global_indices_are_sequential(sample_transcript):
    """Indices run 0..N-1 across page boundaries."""
    store = LineStore.from_document(parse_transcript(sample_transcript))

    assert len(store) == 11
    assert [line.index for line in store] == list(range(11))
    assert store.total_pages == 3


def test_page_for_line(sample_transcript):
    """Each line resolves to the page it came from; out of bounds gives None."""
    store = LineStore.from_document(parse_transcript(sample_transcript))

    assert store.page_for_line(0) == 1
    assert store.page_for_line(4) == 1
    assert store.page_for_line(5) == 2
    assert store.page_for_line(10) == 3
    assert store.page_for_line(11) is None
    assert store.page_for_line(-1) is None


def test_line_keeps_transcript_position(sample_transcript):
    """Flattened lines keep their page-local line number and region."""
    store = LineStore.from_document(parse_transcript(sample_transcript))
    line = store[6]

    assert line.page_number == 2
    assert line.line_number == 2
    assert line.region is not None
    assert line.region.y == 10.0


def test_empty_pages_count_but_add_no_lines(transcript_factory):
    """A page with no lines still counts as a page."""
    data = transcript_factory([["first line\n"], [], ["third page line\n"]])
    store = LineStore.from_document(parse_transcript(data))

    assert len(store) == 2
    assert store.total_pages == 3
    assert store.page_for_line(1) == 3


def test_empty_store():
    """No document gives an empty store."""
    store = LineStore.from_document(None)

    assert len(store) == 0
    assert store.total_pages == 0
    assert store.render_window([0], 5) == ""


def test_render_window_clips_and_merges(transcript_factory):
    """Overlapping ranges render once, in order, clipped to bounds."""
    lines = [f"line {i}\n" for i in range(20)]
    store = LineStore.from_document(parse_transcript(transcript_factory([lines])))

    window = store.render_window([1, 3], radius=2)
    assert window == "".join(lines[0:6])

    window = store.render_window([19], radius=3)
    assert window == "".join(lines[16:20])

    window = store.render_window([2, 15], radius=1, separator="|")
    assert window == "|".join(lines[1:4] + lines[14:17])


def test_render_window_caps_anchors(transcript_factory):
    """Only the first max_anchors anchors are rendered."""
    lines = [f"line {i}\n" for i in range(10)]
    store = LineStore.from_document(parse_transcript(transcript_factory([lines])))

    window = store.render_window([0, 5, 9], radius=0, max_anchors=2)
    assert window == lines[0] + lines[5]
