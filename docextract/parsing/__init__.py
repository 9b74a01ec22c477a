"""PDF parsing utilities for text extraction.

Interprets page content streams to recover the text a reader sees, in the
order it was drawn.

Responsibilities:
    - Content stream interpretation with pypdf tokenization
    - Font decoding through ToUnicode CMaps, encodings and embedded programs
    - Space inference from TJ gaps and estimated space widths
    - Page range and horizontal window selection

Output is one text buffer per page, ready for table reconstruction.
"""

from docextract.parsing.pdf_parser import ExtractedText, PageParseError, PDFParseError, extract_text

__all__ = ["ExtractedText", "PDFParseError", "PageParseError", "extract_text"]
