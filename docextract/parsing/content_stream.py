"""Content-stream interpretation for text extraction.

Executes the text-related operators of a page content stream on top of
pypdf's operator parsing, tracking the graphics and text state, and reports
shown glyphs, TJ gaps and line moves to callbacks. Form XObjects are
followed; everything that does not affect text is ignored.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from pypdf import PageObject, PdfReader
from pypdf.generic import (
    ArrayObject,
    ByteStringObject,
    ContentStream,
    DictionaryObject,
    FloatObject,
    NameObject,
    NumberObject,
    StreamObject,
    TextStringObject,
)

from docextract.parsing.fonts import Glyph, PdfFont, resolve

logger = logging.getLogger(__name__)

Matrix = tuple[float, float, float, float, float, float]
IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
MAX_FORM_DEPTH = 16

FontLoader = Callable[[Any], PdfFont]
GlyphHandler = Callable[[PdfFont, Glyph, float], None]
GapHandler = Callable[[PdfFont, float], None]
NewlineHandler = Callable[[], None]


class ContentStreamError(Exception):
    """Raised when a content stream cannot be interpreted."""

    pass


def multiply(first: Matrix, second: Matrix) -> Matrix:
    """Concatenate two affine matrices, applying first then second."""
    a1, b1, c1, d1, e1, f1 = first
    a2, b2, c2, d2, e2, f2 = second
    return (
        a1 * a2 + b1 * c2,
        a1 * b2 + b1 * d2,
        c1 * a2 + d1 * c2,
        c1 * b2 + d1 * d2,
        e1 * a2 + f1 * c2 + e2,
        e1 * b2 + f1 * d2 + f2,
    )


def translation(tx: float, ty: float) -> Matrix:
    return (1.0, 0.0, 0.0, 1.0, tx, ty)


@dataclass
class GraphicsState:
    """Graphics state parameters saved and restored by q/Q.

    Attributes:
        ctm: Current transformation matrix.
        font: Font selected by Tf.
        font_size: Text font size.
        char_spacing: Tc, in unscaled text space units.
        word_spacing: Tw, applied to single-byte code 32.
        horizontal_scaling: Tz as a fraction.
        leading: TL, used by T*, ' and ".
        rise: Ts, vertical offset of the baseline.
    """

    ctm: Matrix = IDENTITY
    font: PdfFont | None = None
    font_size: float = 0.0
    char_spacing: float = 0.0
    word_spacing: float = 0.0
    horizontal_scaling: float = 1.0
    leading: float = 0.0
    rise: float = 0.0


def _string_bytes(operand: Any) -> bytes:
    if isinstance(operand, (ByteStringObject, TextStringObject)):
        return bytes(operand.original_bytes)
    raise ContentStreamError(f"Expected a string operand, got {type(operand).__name__}")


def _is_number(operand: Any) -> bool:
    return isinstance(operand, (NumberObject, FloatObject))


class ContentStreamInterpreter:
    """Walks content streams and reports text events.

    Args:
        reader: Reader the content streams belong to.
        load_font: Returns the PdfFont for a font resource reference.
        on_glyph: Called with (font, glyph, device x) before each glyph advance.
        on_gap: Called with (font, gap) for each TJ adjustment, gap in
            thousandths of text space with positive values moving right.
        on_newline: Called when a text positioning operator starts a new line.
    """

    def __init__(
        self,
        reader: PdfReader,
        load_font: FontLoader,
        on_glyph: GlyphHandler,
        on_gap: GapHandler,
        on_newline: NewlineHandler,
    ) -> None:
        self.reader = reader
        self.load_font = load_font
        self.on_glyph = on_glyph
        self.on_gap = on_gap
        self.on_newline = on_newline

        self.state = GraphicsState()
        self._saved: list[GraphicsState] = []
        self._text_matrix = IDENTITY
        self._line_matrix = IDENTITY
        self._resources: DictionaryObject | None = None
        self._depth = 0

        self._operators: dict[bytes, Callable[[list[Any]], None]] = {
            b"q": self._op_save,
            b"Q": self._op_restore,
            b"cm": self._op_concat,
            b"BT": self._op_begin_text,
            b"Tf": self._op_font,
            b"Tc": self._op_char_spacing,
            b"Tw": self._op_word_spacing,
            b"Tz": self._op_horizontal_scaling,
            b"TL": self._op_leading,
            b"Ts": self._op_rise,
            b"Td": self._op_move,
            b"TD": self._op_move_set_leading,
            b"Tm": self._op_text_matrix,
            b"T*": self._op_next_line,
            b"Tj": self._op_show,
            b"TJ": self._op_show_adjusted,
            b"'": self._op_next_line_show,
            b'"': self._op_spacing_next_line_show,
            b"Do": self._op_xobject,
        }

    def run(self, page: PageObject) -> None:
        """Interpret the content stream of a page from a fresh state.

        Raises:
            ContentStreamError: If an operator cannot be executed.
            PyPdfError: If pypdf cannot decode or tokenize the stream.
        """
        self.state = GraphicsState()
        self._saved = []
        self._text_matrix = IDENTITY
        self._line_matrix = IDENTITY
        self._depth = 0

        contents = page.get_contents()
        if contents is None:
            return
        self._execute(contents.operations, resolve(page.get("/Resources")))

    def _execute(self, operations: list[tuple[Any, bytes]], resources: Any) -> None:
        outer_resources = self._resources
        self._resources = resources if isinstance(resources, DictionaryObject) else None
        try:
            for operands, operator in operations:
                handler = self._operators.get(operator)
                if handler is not None:
                    handler(operands)
        finally:
            self._resources = outer_resources

    def _numbers(self, operands: list[Any], count: int, operator: str) -> list[float]:
        if len(operands) < count:
            raise ContentStreamError(
                f"Operator {operator} expects {count} operands, got {len(operands)}"
            )
        values = operands[-count:]
        if not all(_is_number(value) for value in values):
            raise ContentStreamError(f"Operator {operator} expects numeric operands")
        return [float(value) for value in values]

    def _resource(self, category: str, name: Any) -> Any:
        """Raw (unresolved) entry of a resource sub-dictionary, or None."""
        if self._resources is None:
            return None
        entries = resolve(self._resources.get(category))
        if not isinstance(entries, DictionaryObject) or name not in entries:
            return None
        return entries.raw_get(name)

    # Graphics state

    def _op_save(self, operands: list[Any]) -> None:
        self._saved.append(replace(self.state))

    def _op_restore(self, operands: list[Any]) -> None:
        if self._saved:
            self.state = self._saved.pop()

    def _op_concat(self, operands: list[Any]) -> None:
        matrix = tuple(self._numbers(operands, 6, "cm"))
        self.state.ctm = multiply(matrix, self.state.ctm)

    # Text state

    def _op_begin_text(self, operands: list[Any]) -> None:
        self._text_matrix = IDENTITY
        self._line_matrix = IDENTITY

    def _op_font(self, operands: list[Any]) -> None:
        if len(operands) < 2 or not isinstance(operands[0], NameObject):
            raise ContentStreamError("Operator Tf expects a font name and a size")
        (size,) = self._numbers(operands[1:], 1, "Tf")
        reference = self._resource("/Font", operands[0])
        if reference is None:
            raise ContentStreamError(f"Font {operands[0]} not found in page resources")
        self.state.font = self.load_font(reference)
        self.state.font_size = size

    def _op_char_spacing(self, operands: list[Any]) -> None:
        (self.state.char_spacing,) = self._numbers(operands, 1, "Tc")

    def _op_word_spacing(self, operands: list[Any]) -> None:
        (self.state.word_spacing,) = self._numbers(operands, 1, "Tw")

    def _op_horizontal_scaling(self, operands: list[Any]) -> None:
        (scale,) = self._numbers(operands, 1, "Tz")
        self.state.horizontal_scaling = scale / 100

    def _op_leading(self, operands: list[Any]) -> None:
        (self.state.leading,) = self._numbers(operands, 1, "TL")

    def _op_rise(self, operands: list[Any]) -> None:
        (self.state.rise,) = self._numbers(operands, 1, "Ts")

    # Text positioning

    def _move_line(self, tx: float, ty: float) -> None:
        self._line_matrix = multiply(translation(tx, ty), self._line_matrix)
        self._text_matrix = self._line_matrix
        self.on_newline()

    def _op_move(self, operands: list[Any]) -> None:
        tx, ty = self._numbers(operands, 2, "Td")
        self._move_line(tx, ty)

    def _op_move_set_leading(self, operands: list[Any]) -> None:
        tx, ty = self._numbers(operands, 2, "TD")
        self.state.leading = -ty
        self._move_line(tx, ty)

    def _op_text_matrix(self, operands: list[Any]) -> None:
        self._line_matrix = tuple(self._numbers(operands, 6, "Tm"))
        self._text_matrix = self._line_matrix
        self.on_newline()

    def _op_next_line(self, operands: list[Any]) -> None:
        self._move_line(0.0, -self.state.leading)

    # Text showing

    def _device_x(self) -> float:
        # Origin of the text rendering matrix [Tfs*Th 0 0 Tfs 0 Trise] x Tm x CTM
        _, _, c, _, e, _ = multiply(self._text_matrix, self.state.ctm)
        return self.state.rise * c + e

    def _advance(self, tx: float) -> None:
        self._text_matrix = multiply(translation(tx, 0.0), self._text_matrix)

    def _show(self, operand: Any) -> None:
        font = self.state.font
        if font is None:
            raise ContentStreamError("Text shown before a font was selected")

        state = self.state
        for glyph in font.decode(_string_bytes(operand)):
            self.on_glyph(font, glyph, self._device_x())
            advance = glyph.width / 1000 * state.font_size + state.char_spacing
            if glyph.single_byte and glyph.code == 32:
                advance += state.word_spacing
            self._advance(advance * state.horizontal_scaling)

    def _op_show(self, operands: list[Any]) -> None:
        if not operands:
            raise ContentStreamError("Operator Tj expects a string operand")
        self._show(operands[-1])

    def _op_show_adjusted(self, operands: list[Any]) -> None:
        if not operands or not isinstance(operands[-1], ArrayObject):
            raise ContentStreamError("Operator TJ expects an array operand")
        for item in operands[-1]:
            if not _is_number(item):
                self._show(item)
                continue
            adjustment = float(item)
            self._advance(-adjustment / 1000 * self.state.font_size * self.state.horizontal_scaling)
            if self.state.font is not None:
                self.on_gap(self.state.font, -adjustment)

    def _op_next_line_show(self, operands: list[Any]) -> None:
        if not operands:
            raise ContentStreamError("Operator ' expects a string operand")
        self._op_next_line([])
        self._show(operands[-1])

    def _op_spacing_next_line_show(self, operands: list[Any]) -> None:
        if len(operands) < 3:
            raise ContentStreamError('Operator " expects word spacing, char spacing and a string')
        self.state.word_spacing, self.state.char_spacing = self._numbers(operands[:2], 2, '"')
        self._op_next_line([])
        self._show(operands[2])

    # External objects

    def _op_xobject(self, operands: list[Any]) -> None:
        if not operands or not isinstance(operands[0], NameObject):
            raise ContentStreamError("Operator Do expects an XObject name")
        xobject = resolve(self._resource("/XObject", operands[0]))
        if not isinstance(xobject, StreamObject):
            logger.warning(f"XObject {operands[0]} not found in resources, skipping")
            return
        if resolve(xobject.get("/Subtype")) != "/Form":
            return
        if self._depth >= MAX_FORM_DEPTH:
            logger.warning(f"Form XObject {operands[0]} nested too deeply, skipping")
            return

        matrix = resolve(xobject.get("/Matrix"))
        form_matrix = IDENTITY
        if isinstance(matrix, ArrayObject) and len(matrix) == 6:
            form_matrix = tuple(float(resolve(value)) for value in matrix)
        form_resources = resolve(xobject.get("/Resources")) or self._resources

        saved_state = replace(self.state)
        saved_depth = len(self._saved)
        saved_matrices = (self._text_matrix, self._line_matrix)
        self.state.ctm = multiply(form_matrix, self.state.ctm)
        self._depth += 1
        try:
            self._execute(ContentStream(xobject, self.reader).operations, form_resources)
        finally:
            self._depth -= 1
            self.state = saved_state
            del self._saved[saved_depth:]
            self._text_matrix, self._line_matrix = saved_matrices
