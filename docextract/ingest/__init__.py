"""Document assembly for retrieval pipelines.

Combines text extraction, sentence segmentation and table reconstruction:
sentences holding tables yield one document per table context, other
sentences yield their sanitized text.
"""

from docextract.ingest.documents import documents_from_html, documents_from_page, documents_from_pdf
from docextract.ingest.sentences import split_sentences

__all__ = ["documents_from_html", "documents_from_page", "documents_from_pdf", "split_sentences"]
