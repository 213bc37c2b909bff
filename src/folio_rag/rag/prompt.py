"""
Edit prompt formatting for the downstream text generator.

The generator itself is not part of Folio RAG; this module only turns an
assembled context into the prompt it expects.
"""

import math
from typing import Optional

from folio_rag.core.contracts import AssembledContext, DocumentStructure

LARGE_DOCUMENT_NOTE = (
    "\n\nNote: This is a large document. The context above shows relevant sections. "
    "Use the document structure information to locate all occurrences if needed."
)

STRUCTURED_INSTRUCTIONS = (
    "IMPORTANT INSTRUCTIONS (Enhanced with Document Structure):\n"
    "1. The document structure information above shows exact locations (pages, lines) "
    "of chapters and sections.\n"
    "2. If the request mentions changing a chapter title, section title, or heading, "
    "you MUST find and update ALL occurrences shown in the document structure.\n"
    "3. Use the page and line number information to ensure you're updating both the "
    "table of contents AND the actual chapter/section headers.\n"
    "4. If multiple occurrences are shown, set replaceAll: true and make sure oldContent "
    "matches all of them.\n"
    "5. Be precise with oldContent - use the exact text as it appears, including any "
    "markdown formatting (\\section*, \\title, etc.).\n"
    "6. Pay attention to the location markers (Page X, Line Y) to understand document "
    "structure.\n\n"
)

PLAIN_INSTRUCTIONS = (
    "IMPORTANT INSTRUCTIONS:\n"
    "1. If the request mentions changing a chapter title, section title, or heading, you "
    "MUST find and update ALL occurrences of that title throughout the document (not just "
    "the table of contents).\n"
    "2. Look for the title in the table of contents AND in the actual chapter/section "
    "headers later in the document.\n"
    "3. If the oldContent matches multiple places, the edit should update all of them. "
    "Use a pattern that will match all occurrences.\n"
    "4. Be precise with the oldContent - use the exact text as it appears, including any "
    "markdown formatting.\n\n"
)

PROPOSAL_FORMAT = (
    "Propose an edit. Respond with natural language explanation, then a JSON block with:\n"
    "{\n"
    '  "description": "Brief explanation of what will change",\n'
    '  "oldContent": "The exact text to replace (use a pattern that matches all '
    'occurrences if needed)",\n'
    '  "newContent": "The new Markdown text",\n'
    '  "replaceAll": true/false  // Set to true if this should replace all occurrences, '
    "false for single replacement\n"
    '  "isSafe": true/false  // Only true if edit is clear, safe, and valid Markdown\n'
    "}\n\n"
    "If unclear or unsafe, explain and set isSafe: false without newContent.\n\n"
    "End with ```json ... ``` for the proposal. Keep response concise."
)


def estimate_tokens(text: str) -> int:
    """Rough token estimate (1 token is about 4 characters)."""
    return math.ceil(len(text) / 4)


def structure_summary(structure: Optional[DocumentStructure]) -> str:
    """
    One-line structure summary, or "" when no headings were detected.

    Args:
        structure: Document structure from the index (optional)

    Returns:
        Summary line prefixed with a blank line
    """
    if structure is None or not structure.headings:
        return ""
    return (
        f"\n\nDocument Structure: {structure.total_pages} pages, {structure.total_lines} "
        f"lines, {len(structure.headings)} chapters/sections detected."
    )


def build_edit_prompt(
    instruction: str,
    context: AssembledContext,
    excerpt: Optional[str] = None,
    structure: Optional[DocumentStructure] = None,
    document_length: int = 0,
    large_document_chars: int = 25000,
) -> str:
    """
    Build the edit prompt for a request.

    Args:
        instruction: User instruction
        context: Assembled context (rendered with its annotations)
        excerpt: Selected excerpt (optional)
        structure: Document structure, adds location-aware instructions
        document_length: Length of the full document text
        large_document_chars: Documents longer than this get a note

    Returns:
        Prompt text
    """
    structure_info = structure_summary(structure)
    relevant = context.render()

    if excerpt:
        body = (
            f'Edit the following selected text: "{excerpt}"\n\n'
            f"Context from document:\n{relevant}{structure_info}"
        )
    else:
        note = LARGE_DOCUMENT_NOTE if document_length > large_document_chars else ""
        body = (
            "Edit the document. Here's the relevant context:\n"
            f"{relevant}{structure_info}{note}"
        )

    instructions = STRUCTURED_INSTRUCTIONS if structure_info else PLAIN_INSTRUCTIONS

    return (
        f'You are a helpful Markdown editor. User request: "{instruction}".\n\n'
        f"{body}\n\n{instructions}{PROPOSAL_FORMAT}"
    )
