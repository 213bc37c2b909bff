"""
Context assembly, instruction analysis and edit prompt formatting.
"""

from folio_rag.rag.context import ContextAssembler, assemble_context
from folio_rag.rag.prompt import build_edit_prompt, estimate_tokens
from folio_rag.rag.request import RequestError, handle_edit_request

__all__ = [
    "ContextAssembler",
    "assemble_context",
    "build_edit_prompt",
    "estimate_tokens",
    "handle_edit_request",
    "RequestError",
]
