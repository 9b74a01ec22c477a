"""Font resources for content-stream text extraction.

Resolves character codes shown by text operators into Unicode text and
advance widths. Simple fonts use one byte per code; composite (Type0) fonts
use two, with an identity code-to-CID mapping. Text comes from the font's
ToUnicode CMap when present, otherwise from its encoding and glyph names.

Embedded TrueType programs of composite fonts are read with fontTools to
recover text for glyphs the font dictionary leaves unmapped.
"""

import io
import logging
import re
import struct
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from fontTools import agl
from fontTools.encodings.MacRoman import MacRoman
from fontTools.encodings.StandardEncoding import StandardEncoding
from fontTools.ttLib import TTFont, TTLibError
from pypdf.errors import PyPdfError
from pypdf.generic import ArrayObject, DictionaryObject, NameObject, StreamObject, is_null_or_none

from docextract.parsing.cmap import parse_to_unicode

logger = logging.getLogger(__name__)

# FontDescriptor /Flags bit 3: glyphs outside the standard Latin set
SYMBOLIC_FLAG = 1 << 2
DEFAULT_CID_WIDTH = 1000.0
MAX_WIDTH_RANGE = 0x10000
SUBSET_PREFIX = re.compile(r"^[A-Z]{6}\+")
IDENTITY_ENCODINGS = ("/Identity-H", "/Identity-V")


def resolve(value: Any) -> Any:
    """Follow an indirect reference; PDF null becomes None."""
    if value is None:
        return None
    value = value.get_object()
    return None if is_null_or_none(value) else value


def _glyph_names_to_text(glyph_names: list[str]) -> dict[int, str]:
    table: dict[int, str] = {}
    for code, glyph_name in enumerate(glyph_names):
        if code < 32 or glyph_name == ".notdef":
            continue
        text = agl.toUnicode(glyph_name)
        if text:
            table[code] = text
    return table


def _win_ansi() -> dict[int, str]:
    table: dict[int, str] = {}
    for code in range(32, 256):
        try:
            table[code] = bytes([code]).decode("cp1252")
        except UnicodeDecodeError:
            continue
    return table


BASE_ENCODINGS: dict[str, dict[int, str]] = {
    "/StandardEncoding": _glyph_names_to_text(StandardEncoding),
    "/MacRomanEncoding": _glyph_names_to_text(MacRoman),
    "/WinAnsiEncoding": _win_ansi(),
}


@dataclass(frozen=True)
class Glyph:
    """A single character shown by a text operator.

    Attributes:
        code: Character code read from the string operand.
        cid: Character identifier selecting the glyph.
        text: Unicode text from the font dictionary, empty if unmapped.
        width: Advance width in thousandths of text space.
        single_byte: True for one-byte codes, which receive word spacing.
    """

    code: int
    cid: int
    text: str
    width: float
    single_byte: bool


class PdfFont:
    """A font dictionary as seen by the text extractor.

    Attributes:
        name: PostScript name without any subset prefix.
        subtype: Font subtype name, e.g. "/TrueType" or "/Type0".
        composite: True for Type0 fonts using two-byte codes.
    """

    def __init__(self, font_dict: DictionaryObject) -> None:
        self.font_dict = font_dict
        self.subtype = str(resolve(font_dict.get("/Subtype")) or "")
        base_font = str(resolve(font_dict.get("/BaseFont")) or "")
        self.name = SUBSET_PREFIX.sub("", base_font.lstrip("/"))
        self.composite = self.subtype == "/Type0"

        self.descendant: DictionaryObject | None = None
        if self.composite:
            cmap_name = resolve(font_dict.get("/Encoding"))
            if str(cmap_name) not in IDENTITY_ENCODINGS:
                label = cmap_name if isinstance(cmap_name, NameObject) else "an embedded CMap"
                logger.debug(f"Font {self.name} uses {label}, decoding it as Identity-H")
            descendants = resolve(font_dict.get("/DescendantFonts"))
            if isinstance(descendants, ArrayObject) and len(descendants) > 0:
                self.descendant = resolve(descendants[0])

        owner = self.descendant if self.composite else font_dict
        self.descriptor: DictionaryObject | None = (
            resolve(owner.get("/FontDescriptor")) if owner is not None else None
        )

        self.to_unicode = self._read_to_unicode()
        if self.composite:
            self.encoding: dict[int, str] = {}
            self.widths, self.default_width = self._read_cid_widths()
        else:
            self.encoding = self._read_encoding()
            self.widths, self.default_width = self._read_simple_widths()

    def __repr__(self) -> str:
        return f"PdfFont(name={self.name!r}, subtype={self.subtype!r})"

    def _number(self, value: Any, key: str) -> float | None:
        """Numeric value of a font entry; malformed entries are logged and ignored."""
        value = resolve(value)
        if value is None:
            return None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        logger.warning(f"Ignoring malformed {key} entry {value!r} in font {self.name}")
        return None

    def _read_to_unicode(self) -> dict[int, str]:
        stream = resolve(self.font_dict.get("/ToUnicode"))
        if not isinstance(stream, StreamObject):
            return {}
        try:
            return parse_to_unicode(stream.get_data())
        except PyPdfError as e:
            logger.warning(f"Ignoring unreadable ToUnicode map of font {self.name}: {e}")
            return {}

    def _read_encoding(self) -> dict[int, str]:
        encoding = resolve(self.font_dict.get("/Encoding"))
        differences = None
        base_name = ""
        if isinstance(encoding, NameObject):
            base_name = str(encoding)
        elif isinstance(encoding, DictionaryObject):
            base_name = str(resolve(encoding.get("/BaseEncoding")) or "")
            differences = resolve(encoding.get("/Differences"))

        flags = 0
        if self.descriptor is not None:
            flags = int(self._number(self.descriptor.get("/Flags"), "/Flags") or 0)
        # Symbolic and Type3 fonts have no implicit standard encoding
        implicit = not flags & SYMBOLIC_FLAG and self.subtype != "/Type3"

        if base_name in BASE_ENCODINGS:
            table = dict(BASE_ENCODINGS[base_name])
        elif implicit:
            table = dict(BASE_ENCODINGS["/StandardEncoding"])
        else:
            table = {}

        if isinstance(differences, ArrayObject):
            is_zapf = self.name == "ZapfDingbats"
            code = 0
            for item in differences:
                item = resolve(item)
                if isinstance(item, NameObject):
                    text = agl.toUnicode(str(item)[1:], is_zapf)
                    if text:
                        table[code] = text
                    else:
                        table.pop(code, None)
                    code += 1
                elif item is not None:
                    start = self._number(item, "/Differences")
                    if start is not None:
                        code = int(start)
        return table

    def _read_simple_widths(self) -> tuple[dict[int, float], float]:
        missing = 0.0
        if self.descriptor is not None:
            missing = self._number(self.descriptor.get("/MissingWidth"), "/MissingWidth") or 0.0

        scale = 1.0
        if self.subtype == "/Type3":
            # Type3 widths are in glyph space, scaled by the font matrix
            matrix = resolve(self.font_dict.get("/FontMatrix"))
            if isinstance(matrix, ArrayObject) and len(matrix) > 0:
                scale = (self._number(matrix[0], "/FontMatrix") or 0.001) * 1000

        widths: dict[int, float] = {}
        first_char = self._number(self.font_dict.get("/FirstChar"), "/FirstChar")
        width_array = resolve(self.font_dict.get("/Widths"))
        if first_char is not None and isinstance(width_array, ArrayObject):
            for offset, item in enumerate(width_array):
                width = self._number(item, "/Widths")
                if width is not None:
                    widths[int(first_char) + offset] = width * scale
        return widths, missing * scale

    def _read_cid_widths(self) -> tuple[dict[int, float], float]:
        if self.descendant is None:
            return {}, DEFAULT_CID_WIDTH

        default = self._number(self.descendant.get("/DW"), "/DW")
        default_width = DEFAULT_CID_WIDTH if default is None else default

        widths: dict[int, float] = {}
        w = resolve(self.descendant.get("/W"))
        if not isinstance(w, ArrayObject):
            return widths, default_width

        # Entries are either "c [w1 w2 ...]" or "c_first c_last w"
        items = [resolve(item) for item in w]
        i = 0
        while i + 1 < len(items):
            start, following = self._number(items[i], "/W"), items[i + 1]
            if start is None:
                break
            first = int(start)
            if isinstance(following, ArrayObject):
                for offset, item in enumerate(following):
                    width = self._number(item, "/W")
                    if width is not None:
                        widths[first + offset] = width
                i += 2
            elif i + 2 < len(items):
                last, width = self._number(following, "/W"), self._number(items[i + 2], "/W")
                if last is not None and width is not None:
                    for cid in range(first, min(int(last), first + MAX_WIDTH_RANGE) + 1):
                        widths[cid] = width
                i += 3
            else:
                break
        return widths, default_width

    def text_for_code(self, code: int) -> str:
        """Unicode text the font dictionary assigns to a character code."""
        if code in self.to_unicode:
            return self.to_unicode[code]
        return self.encoding.get(code, "")

    def decode(self, data: bytes) -> list[Glyph]:
        """Split a string operand into glyphs.

        Args:
            data: Raw bytes of a Tj/TJ string operand.

        Returns:
            Glyphs in show order. A trailing odd byte of a two-byte string
            is dropped.
        """
        if self.composite:
            glyphs = []
            for pos in range(0, len(data) - 1, 2):
                code = (data[pos] << 8) | data[pos + 1]
                glyphs.append(
                    Glyph(
                        code=code,
                        cid=code,
                        text=self.text_for_code(code),
                        width=self.widths.get(code, self.default_width),
                        single_byte=False,
                    )
                )
            return glyphs

        return [
            Glyph(
                code=code,
                cid=code,
                text=self.text_for_code(code),
                width=self.widths.get(code, self.default_width),
                single_byte=True,
            )
            for code in data
        ]

    def characters(self) -> Iterator[tuple[str, float]]:
        """Yield (text, width) for every code with a declared width."""
        for code, width in self.widths.items():
            yield self.text_for_code(code), width

    def truetype_program(self) -> bytes | None:
        """Embedded TrueType program of a CIDFontType2 descendant, if any."""
        if self.descendant is None or self.descriptor is None:
            return None
        if str(resolve(self.descendant.get("/Subtype")) or "") != "/CIDFontType2":
            return None
        stream = resolve(self.descriptor.get("/FontFile2"))
        if not isinstance(stream, StreamObject):
            return None
        return stream.get_data()

    def cid_to_gid(self) -> list[int] | None:
        """Explicit CID-to-GID table, or None when the mapping is the identity."""
        if self.descendant is None:
            return None
        mapping = resolve(self.descendant.get("/CIDToGIDMap"))
        if not isinstance(mapping, StreamObject):
            return None
        data = mapping.get_data()
        return [(data[pos] << 8) | data[pos + 1] for pos in range(0, len(data) - 1, 2)]


def build_glyph_map(font: PdfFont) -> dict[int, str] | None:
    """Map CIDs to text through the glyph names of an embedded TrueType font.

    Args:
        font: A composite font whose descendant may embed a TrueType program.

    Returns:
        CID to text mapping, or None if the font embeds no TrueType program
        or its post table carries no glyph names.
    """
    try:
        program = font.truetype_program()
        if program is None:
            return None
        gids = font.cid_to_gid()
    except PyPdfError as e:
        logger.warning(f"Cannot read embedded program of font {font.name}: {e}")
        return None

    try:
        tt_font = TTFont(io.BytesIO(program))
        if "post" not in tt_font or tt_font["post"].formatType not in (1.0, 2.0):
            return None
        glyph_names = tt_font.getGlyphOrder()
    except (TTLibError, AssertionError, IndexError, KeyError, ValueError, struct.error) as e:
        logger.warning(f"Cannot read embedded TrueType font {font.name}: {e}")
        return None

    if gids is None:
        gids = list(range(len(glyph_names)))

    is_zapf = font.name == "ZapfDingbats"
    glyph_map: dict[int, str] = {}
    for cid, gid in enumerate(gids):
        if gid >= len(glyph_names):
            continue
        text = agl.toUnicode(glyph_names[gid], is_zapf)
        if text:
            glyph_map[cid] = text

    logger.debug(f"Built glyph map with {len(glyph_map)} entries for font {font.name}")
    return glyph_map
