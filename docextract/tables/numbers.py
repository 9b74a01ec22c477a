"""Numeric cell parsing for table reconstruction.

Recognizes plain and thousands-grouped numbers, header years with footnote
decorations, and the usual "not available" placeholders.
"""

import re

from pydantic import BaseModel, ConfigDict

# Plain integer/decimal, or an integer/decimal grouped in thousands
NUMBER_PATTERN = re.compile(r"^(\d*\.?\d+|\d{1,3}(,\d{3})*(\.\d+)?)$")
FLOAT_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

NOT_AVAILABLE_MARKERS = frozenset({"-—", "—", "-", "n/a", ""})

MIN_YEAR = 1900
MAX_YEAR = 2100


class Number(BaseModel):
    """A numeric table cell.

    Attributes:
        value: Parsed numeric value (0 when not available).
        valid: False when the cell holds a "not available" marker.
        text: Trimmed source text the value was parsed from, empty when not available.
    """

    model_config = ConfigDict(frozen=True)

    value: float = 0.0
    valid: bool = True
    text: str = ""

    def is_valid_year(self) -> bool:
        """Check whether this number reads as a calendar year header."""
        if "," in self.text:
            return False
        return self.valid and MIN_YEAR <= self.value <= MAX_YEAR

    def __str__(self) -> str:
        if not self.valid:
            return "N/A"
        if self.value.is_integer():
            return str(int(self.value))
        return f"{self.value:.2f}"


def is_not_available(text: str) -> bool:
    """Return True if text is a dash, em-dash, N/A or blank."""
    return text.strip().lower() in NOT_AVAILABLE_MARKERS


def is_number(text: str) -> Number | None:
    """Parse a table cell as a number.

    Thousands separators are accepted. A single trailing footnote asterisk,
    a " (baseline)" suffix and a leading comma from a footnote list are
    tolerated, so "2020*", "2019 (baseline)" and ",14" all parse.

    Args:
        text: Raw cell text.

    Returns:
        The parsed Number, or None if the text is not numeric.
    """
    original = text.strip()
    if NUMBER_PATTERN.match(original):
        return Number(value=float(original.replace(",", "")), text=original)

    candidate = original.replace("*", "", 1)
    candidate = candidate.replace(" (baseline)", "", 1)
    candidate = candidate.replace(",", "", 1)
    if not FLOAT_PATTERN.match(candidate):
        return None
    return Number(value=float(candidate), text=original)


def is_number_or_not_available(text: str) -> Number | None:
    """Parse a table cell as a number or a "not available" marker.

    Returns:
        The zero, invalid Number for "not available" markers, the parsed Number
        for numeric text, or None otherwise.
    """
    if is_not_available(text):
        return Number(valid=False)
    return is_number(text)
