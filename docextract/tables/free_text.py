"""Heuristic reconstruction of year-indexed tables from linearized page text.

PDF text extraction flattens a table into one cell per line: a title,
an optional "Unit" column header, one or more year headers, then for each
row its name, optional unit and one value per year. Footnote markers are
interleaved as bare small numbers. The scanner below walks the lines once as
an explicit phase machine and recovers the tables it can; anything it cannot
make sense of is left as plain text.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field

from docextract.tables.numbers import Number, is_number, is_number_or_not_available

logger = logging.getLogger(__name__)

# Lines searched after a row name for its run of yearly values
ROW_LOOKAHEAD = 5
# Footnote markers are small: extras must sit this far below every kept value
FOOTNOTE_SEPARATION = 50


class TableReconstructionError(Exception):
    """Raised when the reconstructor reaches an inconsistent internal state."""

    pass


class YearValue(BaseModel):
    """A value for a single year column."""

    year: int
    number: Number


class TableRow(BaseModel):
    """One category row of a reconstructed table.

    Attributes:
        name: Row label, with wrapped continuation lines joined by spaces.
        unit: Unit column text, empty when the table has no unit column.
        year_values: One entry per header year, in header order.
    """

    name: str
    unit: str = ""
    year_values: list[YearValue] = Field(default_factory=list)


class FreeTextTable(BaseModel):
    """A table recovered from free text.

    Attributes:
        title: Line preceding the table header.
        rows: Completed rows, each with exactly one value per header year.
    """

    title: str
    rows: list[TableRow] = Field(default_factory=list)

    def to_contexts(self) -> list[str]:
        """Flatten the table into one sentence per row and year.

        Returns:
            Sentences like "Scope 3: Category 1 for year 2022 is 12 MTCO2e".
        """
        contexts: list[str] = []
        for row in self.rows:
            for year_value in row.year_values:
                sentence = (
                    f"{self.title}: {row.name} for year {year_value.year} "
                    f"is {year_value.number} {row.unit}"
                )
                contexts.append(sentence.rstrip())
        return contexts


class ScanPhase(str, Enum):
    """Where the scanner is within the current table."""

    SEEKING_HEADER = "seeking_header"
    COLLECTING_YEARS = "collecting_years"
    IN_ROW = "in_row"


@dataclass
class _RowDraft:
    name: str
    unit: str = ""
    values: list[Number] = field(default_factory=list)


@dataclass
class _TableDraft:
    title: str
    years: list[int] = field(default_factory=list)
    has_unit: bool = False
    rows: list[_RowDraft] = field(default_factory=list)


class _TableScanner:
    """Single pass over page lines, accumulating table drafts."""

    def __init__(self, lines: list[str]) -> None:
        self.lines = lines
        self.phase = ScanPhase.SEEKING_HEADER
        self.draft: _TableDraft | None = None
        self.completed: list[_TableDraft] = []

    def scan(self) -> list[_TableDraft]:
        i = 0
        while i < len(self.lines):
            line = self.lines[i].strip()
            if not line:
                i += 1
                continue
            if self.phase == ScanPhase.SEEKING_HEADER:
                i = self._seek_header(i, line)
            elif self.phase == ScanPhase.COLLECTING_YEARS:
                i = self._collect_years(i, line)
            else:
                i = self._extend_row(i, line)

        self._complete_draft()
        return self.completed

    def _seek_header(self, i: int, line: str) -> int:
        if line.lower() == "unit":
            title = self._title_before(i)
            if title:
                self.draft = _TableDraft(title=title, has_unit=True)
                self.phase = ScanPhase.COLLECTING_YEARS
            return i + 1

        number = is_number(line)
        if number is not None and number.is_valid_year():
            title = self._title_before(i)
            if title:
                self.draft = _TableDraft(title=title, years=[int(number.value)])
                self.phase = ScanPhase.COLLECTING_YEARS
        return i + 1

    def _collect_years(self, i: int, line: str) -> int:
        number = is_number(line)
        if number is not None:
            # Anything numeric that is not a year is a footnote marker
            if number.is_valid_year():
                self.draft.years.append(int(number.value))
            return i + 1

        if not self.draft.years:
            logger.debug(f"Abandoning table '{self.draft.title}': no header years")
            self.draft = None
            self.phase = ScanPhase.SEEKING_HEADER
            return i + 1

        self.phase = ScanPhase.IN_ROW
        return self._start_row(i)

    def _extend_row(self, i: int, line: str) -> int:
        row = self.draft.rows[-1]
        number = is_number_or_not_available(line)

        if number is not None and number.is_valid_year() and not row.values:
            # A year where a row should begin: the previous line titles a new table
            self.draft.rows.pop()
            self._complete_draft()
            title = self._title_before(i) or ""
            self.draft = _TableDraft(title=title, years=[int(number.value)])
            self.phase = ScanPhase.COLLECTING_YEARS
            return i + 1

        if number is not None:
            row.values.append(number)
            return i + 1

        year_count = len(self.draft.years)
        if len(row.values) > year_count:
            row.values = drop_footnote_values(row.values, year_count)

        if len(row.values) == year_count:
            return self._start_row(i)

        if not row.values:
            self.draft.rows.pop()
            self._complete_draft()
            self.phase = ScanPhase.SEEKING_HEADER
            return i + 1

        return i + 1

    def _start_row(self, i: int) -> int:
        """Open a row named by line i and find where its values begin.

        Returns:
            Index at which the scan resumes.
        """
        row = _RowDraft(name=self.lines[i].strip())
        self.draft.rows.append(row)

        year_count = len(self.draft.years)
        lookahead = ROW_LOOKAHEAD + 1 if self.draft.has_unit else ROW_LOOKAHEAD
        end = min(i + 1 + lookahead, len(self.lines))
        numeric: set[int] = set()
        run_start = -1
        run_length = 0

        for j in range(i + 1, end):
            if is_number_or_not_available(self.lines[j]) is None:
                run_start = -1
                run_length = 0
                continue
            numeric.add(j)
            if run_start == -1:
                run_start = j
            run_length += 1
            if run_length != year_count:
                continue

            name_end = run_start
            if self.draft.has_unit:
                name_end = run_start - 1
                row.unit = self.lines[name_end].strip()
            for k in range(i + 1, name_end):
                if k not in numeric:
                    row.name += " " + self.lines[k].strip()
            return run_start

        return end

    def _title_before(self, i: int) -> str | None:
        """Nearest earlier line that is neither blank nor a footnote number."""
        for j in range(i - 1, -1, -1):
            candidate = self.lines[j].strip()
            if not candidate or is_number(candidate) is not None:
                continue
            return candidate
        return None

    def _complete_draft(self) -> None:
        if self.draft is not None:
            self.completed.append(self.draft)
        self.draft = None


def drop_footnote_values(values: list[Number], year_count: int) -> list[Number]:
    """Remove values captured from footnote markers so one remains per year.

    Footnote markers are usually small numbers. When every surplus value among
    the smallest is more than 50 below all the others, those smallest values
    are dropped. Otherwise the footnotes are assumed to precede the data and
    the leftmost surplus values are dropped.

    Args:
        values: Values captured for a row, in line order.
        year_count: Number of header years.

    Returns:
        The retained values, in line order.

    Raises:
        TableReconstructionError: If fewer values than years are supplied.
    """
    extra = len(values) - year_count
    if extra < 0:
        raise TableReconstructionError(
            f"Row has {len(values)} values for {year_count} years"
        )
    if extra == 0:
        return list(values)

    ranked = sorted(range(len(values)), key=lambda idx: values[idx].value)
    smallest, kept = ranked[:extra], ranked[extra:]
    separated = all(
        values[k].value - values[s].value > FOOTNOTE_SEPARATION for s in smallest for k in kept
    )
    if separated:
        return [values[idx] for idx in sorted(kept)]
    return list(values[extra:])


def _trim_footnote_list(rows: list[_RowDraft]) -> list[_RowDraft]:
    """Drop a trailing footnote list mistaken for single-year rows.

    Footnotes at the bottom of a page read as rows valued 1, 2, 3, ...
    The trailing run of +1 steps and the row it starts from are removed.
    """
    steps = 0
    for idx in range(len(rows) - 1, 0, -1):
        if int(rows[idx].values[0].value) != int(rows[idx - 1].values[0].value) + 1:
            break
        steps += 1
    if steps == 0:
        return rows
    return rows[: len(rows) - steps - 1]


def _finish_table(draft: _TableDraft) -> FreeTextTable:
    year_count = len(draft.years)
    rows = [row for row in draft.rows if len(row.values) == year_count]
    if year_count == 1:
        rows = _trim_footnote_list(rows)

    table_rows = []
    for row in rows:
        year_values = [
            YearValue(year=year, number=number)
            for year, number in zip(draft.years, row.values, strict=True)
        ]
        table_rows.append(TableRow(name=row.name, unit=row.unit, year_values=year_values))
    return FreeTextTable(title=draft.title, rows=table_rows)


def reconstruct_tables(text: str) -> list[FreeTextTable]:
    """Recover year-indexed tables from the text of a single page.

    Args:
        text: Page text with one table cell or text fragment per line.

    Returns:
        Tables found on the page, in reading order. Empty when none are found.

    Raises:
        TableReconstructionError: If row values cannot be paired with years.
    """
    drafts = _TableScanner(text.split("\n")).scan()

    tables: list[FreeTextTable] = []
    for draft in drafts:
        if not draft.years:
            continue
        try:
            table = _finish_table(draft)
        except ValueError as e:
            raise TableReconstructionError(f"Inconsistent table '{draft.title}': {e}") from e
        if table.rows:
            tables.append(table)

    logger.debug(f"Reconstructed {len(tables)} tables from {len(drafts)} candidates")
    return tables
