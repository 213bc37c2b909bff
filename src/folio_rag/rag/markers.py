"""
Literal marker tokens placed in assembled context.

Downstream consumers split and recognise context on these exact strings;
never change them.
"""

LOCATION_CHANGE = "\n\n[... location change ...]\n\n"
ELLIPSIS = "\n\n[...]\n\n"
CHAPTER_OCCURRENCE = "\n\n[... chapter occurrence ...]\n\n"
DOCUMENT_CONTINUES = "\n\n[... document continues ...]\n\n"
TRUNCATED = "\n[... truncated ...]"
