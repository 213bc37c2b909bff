"""
Keyword relevance over paragraph blocks of raw document text.
"""

import re
from typing import List, Sequence

from folio_rag.rag.markers import ELLIPSIS

_BLOCK_SPLIT = re.compile(r"\n\s*\n")


def split_blocks(text: str) -> List[str]:
    """Split text into non-empty blank-line-delimited blocks."""
    return [block for block in _BLOCK_SPLIT.split(text) if block.strip()]


def score_block(block: str, keywords: Sequence[str]) -> int:
    """Summed case-insensitive occurrence counts of keywords in a block."""
    lowered = block.lower()
    return sum(lowered.count(keyword) for keyword in keywords)


def top_blocks(blocks: Sequence[str], keywords: Sequence[str], top_k: int = 3) -> List[int]:
    """
    Rank blocks by keyword score.

    Args:
        blocks: Paragraph blocks
        keywords: Lowercased keywords
        top_k: Number of blocks to keep

    Returns:
        Indices of the best-scoring blocks with a positive score, best first
        (ties keep document order)
    """
    scored = [(score_block(block, keywords), i) for i, block in enumerate(blocks)]
    ranked = sorted((item for item in scored if item[0] > 0), key=lambda item: (-item[0], item[1]))
    return [i for _, i in ranked[:top_k]]


def render_blocks(blocks: Sequence[str], selected: Sequence[int], padding: int = 1) -> str:
    """
    Render selected blocks with their neighbours.

    Each selected block is padded with `padding` blocks on either side.
    Contiguous blocks are joined by a blank line; gaps between runs are
    marked with the ellipsis marker.

    Args:
        blocks: Paragraph blocks
        selected: Indices of blocks to include
        padding: Neighbouring blocks added on each side

    Returns:
        Rendered text ("" if nothing is selected)
    """
    wanted = set()
    for i in selected:
        wanted.update(range(max(0, i - padding), min(len(blocks), i + padding + 1)))

    runs: List[List[str]] = []
    previous = None
    for i in sorted(wanted):
        if previous is None or i != previous + 1:
            runs.append([])
        runs[-1].append(blocks[i])
        previous = i

    return ELLIPSIS.join("\n\n".join(run) for run in runs)
