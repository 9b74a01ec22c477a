"""Assembly of indexable documents from extracted pages and HTML tables.

Page text is split into sentences. A sentence holding recognizable tables
becomes one context document per table value; any other sentence is kept
as a single sanitized document.
"""

import logging
from collections import Counter
from typing import BinaryIO

from docextract.config import ExtractorConfig, get_extractor_config
from docextract.ingest.sentences import split_sentences
from docextract.models.schemas import Document, Topic, find_relevant_topic
from docextract.parsing.pdf_parser import extract_text
from docextract.tables.free_text import TableReconstructionError, reconstruct_tables
from docextract.tables.html_tables import parse_html_tables

logger = logging.getLogger(__name__)


def _log_topic_counts(counts: Counter[str], topics: list[Topic]) -> None:
    for topic in topics:
        logger.info(f"Topic '{topic.name}': {counts[topic.name]} relevant documents")


def _filter_relevant(documents: list[Document], topics: list[Topic] | None) -> list[Document]:
    if not topics:
        return documents

    relevant: list[Document] = []
    counts: Counter[str] = Counter()
    for document in documents:
        topic = find_relevant_topic(document.content, topics)
        if topic is None:
            continue
        counts[topic.name] += 1
        relevant.append(document)

    _log_topic_counts(counts, topics)
    return relevant


def _sentence_documents(sentence: str, page: int) -> list[Document]:
    try:
        tables = reconstruct_tables(sentence)
    except TableReconstructionError as e:
        logger.warning(f"Table reconstruction failed on page {page}, keeping plain text: {e}")
        tables = []

    contexts: list[str] = []
    for table in tables:
        table_contexts = table.to_contexts()
        logger.debug(f"Table '{table.title}' on page {page}: {len(table_contexts)} contexts")
        contexts.extend(table_contexts)

    if contexts:
        return [Document(content=context, page=page).sanitize() for context in contexts]

    document = Document(content=sentence, page=page).sanitize()
    return [document] if document.content else []


def documents_from_page(
    text: str, page: int, topics: list[Topic] | None = None
) -> list[Document]:
    """Turn the text of one page into documents.

    Args:
        text: Extracted page text.
        page: 1-based page number.
        topics: When given, only sentences relevant to one of them are kept.
            Relevance is judged before table reconstruction, so every value
            of a relevant table is kept.

    Returns:
        Per sentence, either its table context documents or a single
        document with the sanitized sentence text.
    """
    documents: list[Document] = []
    counts: Counter[str] = Counter()

    for sentence in split_sentences(text):
        if topics:
            topic = find_relevant_topic(sentence, topics)
            if topic is None:
                continue
            counts[topic.name] += 1
        documents.extend(_sentence_documents(sentence, page))

    if topics:
        _log_topic_counts(counts, topics)
    return documents


def documents_from_pdf(
    pdf: bytes | BinaryIO,
    config: ExtractorConfig | None = None,
    topics: list[Topic] | None = None,
) -> list[Document]:
    """Extract a PDF and assemble documents for every extracted page.

    Args:
        pdf: Raw bytes of the PDF file, or a binary stream.
        config: Extraction options. Defaults to configuration from the environment.
        topics: Optional relevance filter.

    Returns:
        Documents in page order.

    Raises:
        PDFParseError: If the PDF cannot be opened or a page cannot be parsed.
    """
    config = config or get_extractor_config()
    extracted = extract_text(pdf, config)

    documents: list[Document] = []
    for offset, text in enumerate(extracted.pages):
        page = extracted.first_page + offset
        logger.debug(f"Processing page {page}/{extracted.page_count}")
        documents.extend(documents_from_page(text, page, topics))

    logger.info(f"Assembled {len(documents)} documents from {len(extracted.pages)} pages")
    return documents


def documents_from_html(
    html: str, page: int, topics: list[Topic] | None = None
) -> list[Document]:
    """Turn the tables of an HTML layout-analysis result into documents.

    Args:
        html: HTML markup containing <table> elements.
        page: 1-based page number the HTML describes.
        topics: Optional relevance filter.

    Returns:
        One document per table context sentence.
    """
    documents = [
        Document(content=context, page=page).sanitize()
        for table in parse_html_tables(html)
        for context in table.to_contexts()
    ]
    return _filter_relevant(documents, topics)
