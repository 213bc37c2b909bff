"""
Tests for budgeted context assembly.
"""

import time

from folio_rag import DocumentIndex, load_index
from folio_rag.core import Config
from folio_rag.rag.context import ContextAssembler, assemble_context
from folio_rag.rag.markers import (
    CHAPTER_OCCURRENCE,
    DOCUMENT_CONTINUES,
    ELLIPSIS,
    LOCATION_CHANGE,
    TRUNCATED,
)

REPEATED_LINE = "The lighthouse keeper kept a ledger of ships."


def test_excerpt_occurring_twice(sample_transcript, sample_markdown):
    """Two occurrences give two windows, one location marker and a count note."""
    index = load_index(sample_transcript)

    result = assemble_context(sample_markdown, "Make this vivid", excerpt=REPEATED_LINE, index=index)

    assert result.strategy == "excerpt"
    assert result.text.count(LOCATION_CHANGE) == 1
    assert "appears 2 times" in result.annotations
    assert "- Page 2, Line 6" in result.annotations
    assert "- Page 3, Line 9" in result.annotations
    assert len(result.text) <= 25000


def test_excerpt_without_index():
    """Without an index the excerpt is windowed in the raw text."""
    raw = "a" * 100 + "NEEDLE" + "b" * 100

    result = assemble_context(raw, "Fix it", excerpt="NEEDLE", config=Config(excerpt_radius_chars=10))

    assert result.strategy == "excerpt"
    assert result.text == "a" * 10 + "NEEDLE" + "b" * 10
    assert result.annotations is None


def test_unavailable_index_degrades(sample_markdown):
    """A failed build does not stop assembly; raw-text strategies still run."""
    index = DocumentIndex("/nonexistent/book.json")

    result = assemble_context(sample_markdown, "Tidy this", excerpt="old mill", index=index)

    assert not index.is_ready()
    assert "not found" in index.last_error
    assert result.strategy == "excerpt"
    assert "old mill" in result.text
    assert LOCATION_CHANGE not in result.text


def test_missing_excerpt_falls_through():
    """An excerpt that is not in the document does not stop later strategies."""
    raw = "Nobody remembered the mill keeper at all."

    result = assemble_context(raw, 'Fix "mill keeper"', excerpt="nowhere to be found")

    assert result.strategy.startswith("mentions")
    assert "mill keeper" in result.text


def test_quoted_mention_window():
    """Quoted phrases present in the document are windowed first."""
    raw = "x" * 100 + "silver bridge" + "y" * 100
    config = Config(quoted_radius_chars=20)

    result = assemble_context(raw, 'Replace "silver bridge" with "golden bridge"', config=config)

    assert result.strategy.startswith("mentions")
    assert result.text.startswith("x" * 20 + "silver bridge" + "y" * 20)


def test_mentions_stop_at_fill_ratio():
    """No further mention windows are added once the fill limit is passed."""
    raw = "x" * 100 + "alpha" + "x" * 100 + "beta" + "x" * 100 + "gamma" + "x" * 100
    config = Config(quoted_radius_chars=20, mention_fill_ratio=0.001)

    result = assemble_context(raw, 'Check "alpha", "beta" and "gamma"', config=config)

    assert result.text.split(ELLIPSIS)[0] == "x" * 20 + "alpha" + "x" * 20


def test_chapter_reference_uses_headings(sample_transcript, sample_markdown):
    """A chapter reference adds heading windows and a location note."""
    index = load_index(sample_transcript)

    result = assemble_context(sample_markdown, "Tighten the prose in chapter 3", index=index)

    assert "chapter" in result.strategy.split("+")
    assert "Found Chapter 3 at 1 location(s) in the document." in result.annotations
    assert "- Page 2, Line 5: Chapter 3: Origins" in result.annotations
    assert CHAPTER_OCCURRENCE not in result.text


def test_chapter_heading_in_several_places(transcript_factory):
    """Each heading occurrence gets its own window."""
    pages = [
        ["Contents\n", "\\section*{Chapter 2: Rivers}\n"],
        ["\\section*{Chapter 2: Rivers}\n", "Rivers run to the sea.\n"],
    ]
    index = load_index(transcript_factory(pages))
    raw = "".join(text for page in pages for text in page)

    result = assemble_context(raw, "Fix chapter 2", index=index)

    assert CHAPTER_OCCURRENCE in result.text
    assert "Found Chapter 2 at 2 location(s)" in result.annotations


def test_keyword_blocks():
    """The best block is returned with one neighbour on each side."""
    blocks = [f"Paragraph {i} talks about the weather." for i in range(10)]
    blocks[5] = "Here be dragons, many dragons."
    raw = "\n\n".join(blocks)

    result = assemble_context(raw, "Describe the dragons", config=Config())

    assert result.strategy == "keywords"
    assert result.text == "\n\n".join(blocks[4:7])


def test_rename_patterns():
    """Rename requests collect every raw spelling of the chapter heading."""
    raw = (
        "Contents\n\\section*{Chapter 2: Old Name}\n\n"
        "Intro text.\n\n"
        "\\section*{Chapter 2: Old Name}\nBody.\n"
    )

    result = assemble_context(raw, "Change the chapter 2 title to New Name")

    assert "rename" in result.strategy.split("+")
    assert "Chapter 2: Old Name" in result.text


def test_fallback_head_and_tail():
    """With nothing relevant, the head and tail are kept at 70/30 within budget."""
    raw = "abcdefghij" * 500

    result = assemble_context(raw, "zebra", budget=1000)

    assert result.strategy == "fallback"
    assert len(result.text) <= 1000
    head, tail = result.text.split(DOCUMENT_CONTINUES)
    assert raw.startswith(head)
    assert raw.endswith(tail)
    assert abs(len(head) / (len(head) + len(tail)) - 0.7) < 0.01


def test_fallback_small_document():
    """Short documents are returned whole."""
    result = assemble_context("Short text.", "")

    assert result.strategy == "fallback"
    assert result.text == "Short text."


def test_truncation_marker():
    """Over-budget context is cut and marked, staying within budget."""
    raw = "a" * 3000 + "NEEDLE" + "b" * 3000

    result = assemble_context(raw, "Fix", excerpt="NEEDLE", budget=500)

    assert len(result.text) == 500
    assert result.text.endswith(TRUNCATED)


def test_tiny_budgets_are_respected(sample_transcript, sample_markdown):
    """Every strategy honours the budget, however small."""
    index = load_index(sample_transcript)
    cases = [
        ("Make this vivid", REPEATED_LINE),
        ("Tighten chapter 3", None),
        ("Describe the lighthouse", None),
        ("zebra", None),
    ]

    for budget in (5, 25, 60, 300):
        for instruction, excerpt in cases:
            result = assemble_context(sample_markdown, instruction, excerpt, budget, index=index)
            assert len(result.text) <= budget


def test_annotation_cap_drops_notes(sample_transcript, sample_markdown):
    """Annotations at or above the cap are dropped entirely."""
    config = Config(annotation_cap=10)
    index = load_index(sample_transcript, config)

    result = assemble_context(sample_markdown, "Fix", excerpt=REPEATED_LINE, index=index)

    assert result.annotations is None
    assert LOCATION_CHANGE in result.text


def test_render_appends_annotations(sample_transcript, sample_markdown):
    """render() gives the text followed by its annotations."""
    index = load_index(sample_transcript)

    result = ContextAssembler(index.config, index).assemble(sample_markdown, "Fix", REPEATED_LINE)

    assert result.render() == result.text + result.annotations


def test_failing_strategy_is_skipped(monkeypatch):
    """A strategy that raises is logged and skipped."""

    def broken(self, request):
        raise RuntimeError("boom")

    monkeypatch.setattr(ContextAssembler, "_from_mentions", broken)

    result = assemble_context("Nothing special here.", 'Fix "special"')

    assert "mentions" not in result.strategy
    assert result.text


def test_chapter_structure_note_with_excerpt(sample_transcript, sample_markdown):
    """A referenced chapter is listed even when the excerpt strategy produced the text."""
    index = load_index(sample_transcript)

    result = assemble_context(
        sample_markdown,
        "Rewrite this line in chapter 3",
        excerpt="Every ship was written down with care.",
        index=index,
    )

    assert result.strategy == "excerpt"
    assert "[Document Structure] Found 1 occurrence(s) of Chapter 3:" in result.annotations
    assert "- Page 2, Line 5: Chapter 3: Origins" in result.annotations
    assert "[Selected Text Location] Found at:\n- Page 2, Line 7" in result.annotations


def test_related_content_note(transcript_factory):
    """Long instruction words found on a few lines get a short related note."""
    pages = [["Alpha line\n", "The lantern glowed.\n", "Beta line\n"]]
    index = load_index(transcript_factory(pages))

    result = assemble_context("".join(pages[0]), "Brighten lantern", index=index)

    assert "[Related Content]\nlantern: Alpha line\nThe lantern glowed.\n" in result.annotations


def test_related_content_skips_common_words(transcript_factory):
    """Words found on 30 or more lines are not pointed at."""
    lines = ["common words filler\n"] * 30
    index = load_index(transcript_factory([lines]))

    result = assemble_context("".join(lines), "common", index=index)

    assert result.annotations is None


def test_advisories_capped(sample_transcript, sample_markdown):
    """Advisory notes are cut to the advisory cap and later parts skipped."""
    index = load_index(sample_transcript, Config(advisory_cap=40))

    result = assemble_context(
        sample_markdown,
        "Rewrite this line in chapter 3",
        excerpt="Every ship was written down with care.",
        index=index,
    )

    assert len(result.annotations) == 40
    assert result.annotations.startswith("\n\n[Document Structure]")
    assert "[Selected Text Location]" not in result.annotations


def test_no_advisories_without_index(sample_markdown):
    """Without a loaded index only step notes are produced."""
    result = assemble_context(sample_markdown, "Rewrite chapter 3", index=DocumentIndex())

    assert result.annotations is None


def test_long_repetitive_instruction_is_fast():
    """Assembly time stays bounded for long instructions that are not renames."""
    instruction = "chapter 1 " + "change chapter " * 2000

    start = time.perf_counter()
    result = assemble_context("short doc", instruction)

    assert time.perf_counter() - start < 2.0
    assert result.strategy == "fallback"
