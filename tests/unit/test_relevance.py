"""
Tests for keyword scoring of paragraph blocks.
"""

from folio_rag.rag.markers import ELLIPSIS
from folio_rag.rag.relevance import render_blocks, score_block, split_blocks, top_blocks


def test_split_blocks():
    """Blank-line runs (including whitespace-only lines) separate blocks."""
    assert split_blocks("a\n\n  \n\nb\n \nc") == ["a", "b", "c"]
    assert split_blocks("one block\nstill one") == ["one block\nstill one"]
    assert split_blocks("") == []


def test_score_block():
    """Scores sum case-insensitive counts of every keyword."""
    assert score_block("Dragons and dragons and a knight", ["dragons", "knight"]) == 3
    assert score_block("nothing here", ["dragons"]) == 0


def test_top_blocks_order():
    """Best first; ties keep document order; zero scores dropped."""
    blocks = ["cat", "dog dog", "cat dog", "bird", "dog cat"]

    assert top_blocks(blocks, ["dog", "cat"], top_k=3) == [1, 2, 4]
    assert top_blocks(blocks, ["fish"], top_k=3) == []
    assert top_blocks(blocks, ["bird"], top_k=3) == [3]


def test_render_blocks_padding_and_gaps():
    """Selected blocks get neighbours; separate runs are marked."""
    blocks = [f"block {i}" for i in range(10)]

    assert render_blocks(blocks, [5]) == "block 4\n\nblock 5\n\nblock 6"
    assert render_blocks(blocks, [0, 9]) == "block 0\n\nblock 1" + ELLIPSIS + "block 8\n\nblock 9"
    # Overlapping neighbourhoods merge into one run
    assert render_blocks(blocks, [2, 4]) == "\n\n".join(blocks[1:6])
    assert render_blocks(blocks, []) == ""
