"""
Basic usage example for Folio RAG.
"""

from folio_rag import Config, load_index

# Build the index from a page-structured transcript
print("Loading transcript...")
config = Config(context_budget=25000)
index = load_index("transcript.json", config)
print(f"Index ready: {index.is_ready()}")

# Document structure
structure = index.document_structure()
print(f"\n{structure.total_pages} pages, {structure.total_lines} lines")
for heading in structure.headings:
    print(f"  Page {heading.page_number}, Line {heading.line_index}: {heading.title}")

# Locate a fragment
print("\nOccurrences:")
for occ in index.windowed_occurrences("your fragment here", max_results=3):
    print(f"  Page {occ.page_number}, Line {occ.line_index}: {occ.text}")

# Assemble context for an edit instruction
with open("document.mmd", encoding="utf-8") as f:
    markdown = f.read()

assembled = index.assemble_context(markdown, "Rename Chapter 3 to 'Beginnings'")
print(f"\nStrategy: {assembled.strategy}")
print(assembled.render()[:500])
