"""
Search layer: tokenizer, token index, structure detection and occurrence lookup.
"""

from folio_rag.search.locator import OccurrenceLocator
from folio_rag.search.structure import StructureDetector, classify_heading, clean_title
from folio_rag.search.token_index import TokenIndex
from folio_rag.search.tokenizer import IndexTokenizer

__all__ = [
    "IndexTokenizer",
    "TokenIndex",
    "StructureDetector",
    "OccurrenceLocator",
    "classify_heading",
    "clean_title",
]
