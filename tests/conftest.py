"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - test_data_dir: Path to sample files directory
    - make_pdf: Builds small PDF documents from raw objects
    - text_pdf: Builds a PDF with one content stream per page
    - truetype_font: Builds minimal TrueType programs with named glyphs
    - clean_env: Removes extractor environment overrides

PDFs are assembled in memory with correct cross-reference offsets so tests
can exercise exact content stream operators without binary fixtures.
"""

import io
from collections.abc import Callable
from pathlib import Path

import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen

HELVETICA = b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>"
EXTRACTOR_ENV_VARS = (
    "DOCEXTRACT_PAGE_MIN",
    "DOCEXTRACT_PAGE_MAX",
    "DOCEXTRACT_X_RANGE_MIN",
    "DOCEXTRACT_X_RANGE_MAX",
    "DOCEXTRACT_SHOW_PAGE_NUMBERS",
)


def stream_object(data: bytes, entries: bytes = b"") -> bytes:
    """Return the body of a stream object holding data."""
    return b"<< /Length %d %s>>\nstream\n" % (len(data), entries) + data + b"\nendstream"


def build_pdf(objects: list[bytes]) -> bytes:
    """Serialize object bodies into a PDF file.

    Args:
        objects: Object bodies; objects[0] becomes object 1 and must be the catalog.

    Returns:
        PDF file bytes with a valid xref table and trailer.
    """
    out = bytearray(b"%PDF-1.7\n%\xe2\xe3\xcf\xd3\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(out)


def build_text_pdf(
    contents: list[bytes], font: bytes = HELVETICA, extra: list[bytes] | None = None
) -> bytes:
    """Build a PDF whose pages share font /F1 (object 3).

    Args:
        contents: Content stream data, one per page.
        font: Body of the font dictionary object.
        extra: Additional objects numbered from 4, for the font to reference.

    Returns:
        PDF file bytes.
    """
    extra = extra or []
    first_page = 4 + len(extra)
    page_numbers = [first_page + 2 * idx for idx in range(len(contents))]
    kids = b" ".join(b"%d 0 R" % number for number in page_numbers)

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [%s] /Count %d >>" % (kids, len(contents)),
        font,
        *extra,
    ]
    for number, content in zip(page_numbers, contents, strict=True):
        objects.append(
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            b"/Resources << /Font << /F1 3 0 R >> >> /Contents %d 0 R >>" % (number + 1)
        )
        objects.append(stream_object(content))
    return build_pdf(objects)


def build_truetype(glyph_order: list[str]) -> bytes:
    """Build a minimal TrueType font whose post table keeps glyph names.

    Args:
        glyph_order: Glyph names in glyph id order, starting with ".notdef".

    Returns:
        Font file bytes.
    """
    pen = TTGlyphPen(None)
    pen.moveTo((100, 0))
    pen.lineTo((100, 700))
    pen.lineTo((500, 700))
    pen.lineTo((500, 0))
    pen.closePath()
    glyph = pen.glyph()

    builder = FontBuilder(1000, isTTF=True)
    builder.setupGlyphOrder(glyph_order)
    builder.setupCharacterMap({ord(name): name for name in glyph_order if len(name) == 1})
    builder.setupGlyf({name: glyph for name in glyph_order})
    builder.setupHorizontalMetrics({name: (600, 100) for name in glyph_order})
    builder.setupHorizontalHeader(ascent=800, descent=-200)
    builder.setupNameTable({"familyName": "Test", "styleName": "Regular"})
    builder.setupOS2(sTypoAscender=800, usWinAscent=800, usWinDescent=200)
    builder.setupPost(keepGlyphNames=True)

    buffer = io.BytesIO()
    builder.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def test_data_dir() -> Path:
    """Return path to test data directory.

    Returns:
        Absolute path to tests/data/ directory.
    """
    return Path(__file__).parent / "data"


@pytest.fixture
def make_pdf() -> Callable[[list[bytes]], bytes]:
    """Return the raw object PDF builder."""
    return build_pdf


@pytest.fixture
def text_pdf() -> Callable[..., bytes]:
    """Return the single-font text PDF builder."""
    return build_text_pdf


@pytest.fixture
def pdf_stream() -> Callable[..., bytes]:
    """Return the stream object body builder."""
    return stream_object


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove extractor settings inherited from the shell or a .env file."""
    for name in EXTRACTOR_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def truetype_font() -> Callable[[list[str]], bytes]:
    """Return the TrueType font builder."""
    return build_truetype
