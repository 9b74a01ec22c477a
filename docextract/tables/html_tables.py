"""Parsing of HTML tables produced by layout-analysis services.

Cells are kept as plain strings; numeric interpretation happens only when a
table is flattened into context sentences.
"""

import logging

from bs4 import BeautifulSoup
from pydantic import BaseModel, Field

from docextract.tables.numbers import is_number

logger = logging.getLogger(__name__)


class HTMLTable(BaseModel):
    """A table parsed from HTML.

    Attributes:
        title: Space-joined first row when it was narrower than the second.
        rows: Cell texts per row, header row first.
    """

    title: str = ""
    rows: list[list[str]] = Field(default_factory=list)

    def to_contexts(self) -> list[str]:
        """Flatten data rows into "label: header: value, ..." sentences.

        Year headers are rewritten as "For year <year>". Blank cells are
        skipped and rows without any value are omitted.

        Returns:
            One sentence per data row with at least one value.
        """
        if len(self.rows) <= 1 or not self.rows[0]:
            return []

        header = self.rows[0]
        contexts: list[str] = []
        for row in self.rows[1:]:
            if not row:
                continue
            parts: list[str] = []
            for idx, cell in enumerate(row[1:], start=1):
                value = cell.strip()
                if not value:
                    continue
                label = header[idx].strip() if idx < len(header) else ""
                year = is_number(label)
                if year is not None and year.is_valid_year():
                    label = f"For year {int(year.value)}"
                parts.append(f"{label}: {value}")
            if parts:
                contexts.append(f"{row[0].strip()}: {', '.join(parts)}")
        return contexts


def _is_blank_row(row: list[str]) -> bool:
    return all(not cell.strip() for cell in row)


def parse_html_tables(html: str) -> list[HTMLTable]:
    """Parse every <table> in an HTML document.

    A row whose cells are all blank splits a table in two. Cells declared
    with rowspan are repeated at the same column index in the rows they span.

    Args:
        html: HTML markup, possibly with JSON-escaped quotes.

    Returns:
        Parsed tables in document order.
    """
    soup = BeautifulSoup(html.replace('\\"', '"'), "html.parser")

    accumulated: list[list[list[str]]] = []
    # Column index -> (rows still to span, cell text)
    spans: dict[int, tuple[int, str]] = {}

    def splice_spanned(row: list[str], idx: int) -> int:
        while idx in spans:
            remaining, text = spans[idx]
            row.append(text)
            if remaining <= 1:
                del spans[idx]
            else:
                spans[idx] = (remaining - 1, text)
            idx += 1
        return idx

    for table in soup.find_all("table"):
        current: list[list[str]] = []
        for tr in table.find_all("tr"):
            row: list[str] = []
            idx = 0
            for td in tr.find_all("td"):
                idx = splice_spanned(row, idx)
                rowspan = td.get("rowspan")
                if rowspan is not None:
                    try:
                        span = int(rowspan)
                    except ValueError:
                        logger.warning(f"Ignoring malformed rowspan attribute: {rowspan!r}")
                    else:
                        if span > 1:
                            spans[idx] = (span - 1, td.get_text())
                row.append(td.get_text())
                idx += 1
            if row:
                splice_spanned(row, idx)

            if _is_blank_row(row):
                accumulated.append(current)
                current = []
            else:
                current.append(row)
        accumulated.append(current)

    tables: list[HTMLTable] = []
    for rows in accumulated:
        if not rows:
            continue
        if len(rows) > 1 and len(rows[0]) < len(rows[1]):
            tables.append(HTMLTable(title=" ".join(rows[0]), rows=rows[1:]))
        else:
            tables.append(HTMLTable(rows=rows))

    logger.debug(f"Parsed {len(tables)} tables from HTML")
    return tables
