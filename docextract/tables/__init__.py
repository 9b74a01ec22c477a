"""Table reconstruction from extracted text and HTML.

Free text has lost its column layout, so tables are recovered from the
sequence of lines: a title, a run of year headers, then labelled rows of
numbers. HTML tables come from layout analysis and keep their cell grid.

Both table kinds render as context sentences, one per value.
"""

from docextract.tables.free_text import (
    FreeTextTable,
    TableReconstructionError,
    TableRow,
    YearValue,
    reconstruct_tables,
)
from docextract.tables.html_tables import HTMLTable, parse_html_tables
from docextract.tables.numbers import Number, is_number, is_number_or_not_available

__all__ = [
    "FreeTextTable",
    "HTMLTable",
    "Number",
    "TableReconstructionError",
    "TableRow",
    "YearValue",
    "is_number",
    "is_number_or_not_available",
    "parse_html_tables",
    "reconstruct_tables",
]
