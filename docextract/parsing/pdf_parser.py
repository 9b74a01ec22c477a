"""PDF text extraction module using pypdf.

Produces one reading-order text buffer per page by interpreting page content
streams, with spaces inferred from TJ gaps and newlines from text moves.
"""

import io
import logging
from collections.abc import Hashable
from typing import Any, BinaryIO

from pydantic import BaseModel, Field
from pypdf import PasswordType, PdfReader
from pypdf.errors import PdfReadError, PyPdfError
from pypdf.generic import DictionaryObject, IndirectObject

from docextract.config import ExtractorConfig, get_extractor_config
from docextract.parsing.content_stream import ContentStreamError, ContentStreamInterpreter
from docextract.parsing.fonts import Glyph, PdfFont, build_glyph_map, resolve
from docextract.parsing.spacing import estimate_space_width

logger = logging.getLogger(__name__)

# Constants
PDF_MAGIC_BYTES = b"%PDF"
# A TJ gap wider than this fraction of the space width reads as a space
GAP_SPACE_RATIO = 0.3


class ExtractedText(BaseModel):
    """Extracted text of a PDF document.

    Attributes:
        pages: Text of each extracted page, in page order.
        page_count: Total number of pages in the document.
        first_page: Page number of pages[0].
    """

    pages: list[str]
    page_count: int = Field(ge=0)
    first_page: int = Field(ge=1)


class PDFParseError(Exception):
    """Raised when PDF parsing fails."""

    pass


class PageParseError(PDFParseError):
    """Raised when a page's content stream cannot be interpreted.

    Attributes:
        page_number: 1-based number of the page that failed.
    """

    def __init__(self, page_number: int, message: str) -> None:
        super().__init__(message)
        self.page_number = page_number


class DocumentContext:
    """Per-document font caches shared by all pages of one extraction."""

    def __init__(self) -> None:
        self._fonts: dict[Hashable, PdfFont] = {}
        self._glyph_maps: dict[PdfFont, dict[int, str] | None] = {}
        self._space_widths: dict[PdfFont, float] = {}

    def font(self, reference: Any) -> PdfFont:
        """Load a font resource once per document.

        Args:
            reference: Font entry of a resource dictionary, direct or indirect.

        Raises:
            ContentStreamError: If the entry is not a readable font dictionary.
        """
        if isinstance(reference, IndirectObject):
            key: Hashable = (reference.idnum, reference.generation)
        else:
            key = id(reference)
        if key in self._fonts:
            return self._fonts[key]

        font_dict = resolve(reference)
        if not isinstance(font_dict, DictionaryObject):
            raise ContentStreamError(f"Font resource is not a dictionary: {font_dict!r}")
        try:
            font = PdfFont(font_dict)
        except (PyPdfError, TypeError, ValueError) as e:
            raise ContentStreamError(f"Cannot load font {font_dict.get('/BaseFont')}: {e}") from e

        self._fonts[key] = font
        return font

    def glyph_map(self, font: PdfFont) -> dict[int, str] | None:
        if font not in self._glyph_maps:
            self._glyph_maps[font] = build_glyph_map(font)
        return self._glyph_maps[font]

    def space_width(self, font: PdfFont) -> float:
        if font not in self._space_widths:
            self._space_widths[font] = estimate_space_width(font.characters())
        return self._space_widths[font]


class _PageTextCollector:
    """Receives interpreter events for one page and builds its text."""

    def __init__(self, context: DocumentContext, config: ExtractorConfig) -> None:
        self.context = context
        self.x_range_min = config.x_range_min
        self.x_range_max = config.x_range_max
        self.buffer = io.StringIO()

    def write(self, text: str) -> None:
        self.buffer.write(text)

    def on_glyph(self, font: PdfFont, glyph: Glyph, x_device: float) -> None:
        text = glyph.text
        if not text:
            glyph_map = self.context.glyph_map(font)
            if glyph_map is not None:
                text = glyph_map.get(glyph.cid, "")
        if self.x_range_min <= x_device < self.x_range_max:
            self.buffer.write(text)

    def on_gap(self, font: PdfFont, gap: float) -> None:
        if gap > GAP_SPACE_RATIO * self.context.space_width(font):
            self.buffer.write(" ")

    def on_newline(self) -> None:
        self.buffer.write("\n")


def _validate_pdf_bytes(file_content: bytes) -> None:
    """Validate PDF file content before parsing.

    Args:
        file_content: Raw bytes of the PDF file.

    Raises:
        PDFParseError: If validation fails.
    """
    if not file_content:
        raise PDFParseError("Empty file provided")

    if not file_content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise PDFParseError("Invalid PDF: file does not start with PDF header")


def _open_reader(pdf: bytes | BinaryIO) -> PdfReader:
    file_content = pdf if isinstance(pdf, bytes) else pdf.read()
    _validate_pdf_bytes(file_content)

    try:
        reader = PdfReader(io.BytesIO(file_content))
    except PdfReadError as e:
        raise PDFParseError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise PDFParseError(f"Failed to read PDF: {e}") from e

    if reader.is_encrypted:
        try:
            password_type = reader.decrypt("")
        except (PyPdfError, NotImplementedError) as e:
            raise PDFParseError(f"Cannot decrypt PDF: {e}") from e
        if password_type == PasswordType.NOT_DECRYPTED:
            raise PDFParseError("PDF is protected by a user password")
        logger.debug("Opened encrypted PDF with an empty user password")
    return reader


def extract_text(pdf: bytes | BinaryIO, config: ExtractorConfig | None = None) -> ExtractedText:
    """Extract reading-order text from a range of PDF pages.

    Args:
        pdf: Raw bytes of the PDF file, or a binary stream positioned at its start.
        config: Page range, horizontal window and marker options. Defaults to
            configuration from the environment.

    Returns:
        ExtractedText with one buffer per page in the clamped page range.

    Raises:
        PDFParseError: If the file is empty, not a PDF, corrupt or protected
            by a user password.
        PageParseError: If a page's content stream cannot be interpreted.
    """
    config = config or get_extractor_config()
    reader = _open_reader(pdf)

    try:
        page_count = len(reader.pages)
    except PyPdfError as e:
        raise PDFParseError(f"Corrupt page tree: {e}") from e
    if page_count == 0:
        logger.warning("PDF contains no pages")

    last_page = min(config.page_max, page_count)
    context = DocumentContext()
    pages: list[str] = []

    for page_number in range(config.page_min, last_page + 1):
        collector = _PageTextCollector(context, config)
        if config.show_page_numbers:
            collector.write(f"Page {page_number}\n\n")

        interpreter = ContentStreamInterpreter(
            reader,
            load_font=context.font,
            on_glyph=collector.on_glyph,
            on_gap=collector.on_gap,
            on_newline=collector.on_newline,
        )
        try:
            interpreter.run(reader.pages[page_number - 1])
        except (ContentStreamError, PyPdfError) as e:
            raise PageParseError(page_number, f"error parsing page {page_number}: {e}") from e

        collector.write("\n")
        pages.append(collector.buffer.getvalue())

    logger.info(f"Extracted text from {len(pages)} of {page_count} pages")

    return ExtractedText(pages=pages, page_count=page_count, first_page=config.page_min)
