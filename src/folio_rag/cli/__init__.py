"""
Command-line interface for Folio RAG.
"""
