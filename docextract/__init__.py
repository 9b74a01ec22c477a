"""docextract - Text and table extraction from PDF documents.

Turns PDF pages into reading-order text, rebuilds the numeric tables found
in that text, and emits one context sentence per table cell for retrieval
indexing.

Components:
    - parsing: Content stream interpretation, font decoding and spacing
    - tables: Free-text and HTML table reconstruction
    - ingest: Assembly of indexable documents from pages and tables
    - models: Document and topic schemas
    - config: Extractor options and logging setup
"""

__version__ = "0.1.0"
