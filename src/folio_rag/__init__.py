"""
Folio RAG - page-structured transcript indexing and budgeted context assembly.
"""

from folio_rag.core import AssembledContext, Config, DocumentStructure
from folio_rag.index import DocumentIndex, load_index
from folio_rag.rag import assemble_context

__version__ = "0.1.0"

__all__ = [
    "DocumentIndex",
    "load_index",
    "assemble_context",
    "AssembledContext",
    "DocumentStructure",
    "Config",
]
