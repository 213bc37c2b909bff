"""
Edit request handling: the JSON boundary in front of the context assembler.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from folio_rag.core.contracts import Config
from folio_rag.rag.context import ContextAssembler
from folio_rag.rag.prompt import build_edit_prompt, estimate_tokens

logger = logging.getLogger(__name__)


class RequestError(ValueError):
    """Raised for an invalid edit request payload."""


def _optional_text(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise RequestError(f"{key} must be a string")
    return value


def handle_edit_request(
    payload: Mapping[str, Any],
    index=None,
    config: Optional[Config] = None,
) -> Dict[str, Any]:
    """
    Assemble context and an edit prompt for a JSON edit request.

    Payload keys: markdown (document text), request (instruction),
    selectedText (optional excerpt), budget (optional character budget).

    Args:
        payload: Decoded request JSON
        index: DocumentIndex over the same document (optional)
        config: Configuration (defaults to the index's, then Config())

    Returns:
        Response mapping with context, annotations, prompt and statistics

    Raises:
        RequestError: If the request or markdown is missing or malformed
    """
    if not isinstance(payload, Mapping):
        raise RequestError("Request body must be a JSON object")

    instruction = _optional_text(payload, "request")
    if not instruction or not instruction.strip():
        raise RequestError("Request is required")

    markdown = _optional_text(payload, "markdown")
    if not markdown:
        raise RequestError("Markdown content is required")

    excerpt = _optional_text(payload, "selectedText")

    budget = payload.get("budget")
    if budget is not None and (
        isinstance(budget, bool) or not isinstance(budget, int) or budget <= 0
    ):
        raise RequestError("budget must be a positive integer")

    if config is None:
        config = index.config if index is not None else Config()

    assembled = ContextAssembler(config, index).assemble(markdown, instruction, excerpt, budget)
    index_ready = index is not None and index.is_ready()
    structure = index.document_structure() if index_ready else None

    prompt = build_edit_prompt(
        instruction,
        assembled,
        excerpt=excerpt,
        structure=structure,
        document_length=len(markdown),
        large_document_chars=config.context_budget,
    )

    logger.info(
        "Processing request: context size ~%d tokens, full doc: %d chars, enhanced index: %s",
        estimate_tokens(assembled.render()),
        len(markdown),
        index_ready,
    )

    return {
        "context": assembled.text,
        "annotations": assembled.annotations,
        "strategy": assembled.strategy,
        "prompt": prompt,
        "estimated_tokens": estimate_tokens(prompt),
        "document_chars": len(markdown),
        "index_ready": index_ready,
    }
