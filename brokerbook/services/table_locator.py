"""
Table locator: finds the row span of a logical table inside a worksheet.

Layout (0-based rows):
    marker row                r0
    header rows               header_start .. header_start + header_rows
    data rows                 data_start .. data_end (exclusive)
    end marker / blank row    data_end

header_start is r0 + 1, or r0 itself for tables whose marker is the first
header cell. The end is the first row matching the end marker, or the first
row whose required columns are all blank (trailing blank rows before a
footer). Blank-row checks only happen at the start of a record row group.
A table whose end condition never occurs runs to the last row of the sheet.

A missing start marker yields TableRegion.absent(), never an error.
"""
from __future__ import annotations

from typing import Iterable, Optional

import structlog

from brokerbook.schemas.tables import MarkerMatch, TableDefinition
from brokerbook.services.errors import TableNotLocatableError
from brokerbook.services.workbook import Sheet

logger = structlog.get_logger(__name__)


class TableRegion:
    """Row span of one table instance; is_absent when the marker was not found."""

    def __init__(
        self,
        sheet: Optional[Sheet],
        marker_row: int = -1,
        header_start: int = 0,
        header_rows: int = 0,
        data_end: Optional[int] = None
        ):
        self.sheet = sheet
        self.marker_row = marker_row
        self.header_start = header_start
        self.header_rows = header_rows
        self.data_start = header_start + header_rows
        self.data_end = self.data_start if data_end is None else data_end
        if self.data_end < self.data_start:
            raise ValueError(f"Table region end {self.data_end} precedes start {self.data_start}")

    @classmethod
    def absent(cls) -> TableRegion:
        return cls(sheet=None)

    @property
    def is_absent(self) -> bool:
        return self.sheet is None

    @property
    def data_span(self) -> tuple:
        """(first data row, end row exclusive)."""
        return self.data_start, self.data_end

    @property
    def data_row_count(self) -> int:
        return self.data_end - self.data_start

    def with_end(self, data_end: int) -> TableRegion:
        return TableRegion(self.sheet, self.marker_row, self.header_start, self.header_rows, data_end)

    def __repr__(self) -> str:
        if self.is_absent:
            return "TableRegion(absent)"
        return (
            f"TableRegion(sheet={self.sheet.name!r}, marker_row={self.marker_row}, "
            f"header_start={self.header_start}, data={self.data_start}..{self.data_end})"
            )


def locate_table_strict(sheet: Sheet, definition: TableDefinition, start_row: int = 0) -> TableRegion:
    """
    Find the start marker and header region of a table.

    The returned region ends at its data start; call find_table_end() once
    the header is resolved (blank-row detection needs the required columns).

    Raises:
        TableNotLocatableError: Start marker not found
    """
    marker_row = sheet.find_row(definition.name, start=start_row, match=definition.marker_match)
    if marker_row is None:
        raise TableNotLocatableError(
            "Table start marker not found",
            table_name=definition.name,
            details={"sheet": sheet.name, "match": definition.marker_match.value}
            )
    header_start = marker_row if definition.marker_is_header else marker_row + 1
    return TableRegion(sheet, marker_row, header_start, definition.header_rows)


def locate_table(sheet: Optional[Sheet], definition: TableDefinition, start_row: int = 0) -> TableRegion:
    """Same as locate_table_strict(), but a missing marker (or sheet) gives the absent region."""
    if sheet is None:
        logger.debug("Table sheet not found", table_name=definition.name, sheet=definition.sheet_name)
        return TableRegion.absent()
    try:
        region = locate_table_strict(sheet, definition, start_row)
    except TableNotLocatableError:
        logger.debug("Table absent", table_name=definition.name, sheet=sheet.name)
        return TableRegion.absent()
    logger.debug("Table located", table_name=definition.name, sheet=sheet.name, marker_row=region.marker_row)
    return region


def find_table_end(
    region: TableRegion,
    definition: TableDefinition,
    blank_columns: Optional[Iterable[int]] = None
    ) -> TableRegion:
    """
    Complete a located region with its end row.

    Args:
        region: Region returned by locate_table()
        definition: Table declaration (end marker, rows per record)
        blank_columns: Physical columns checked by the blank-row rule
            (resolved required columns); None checks the whole row

    Returns:
        Region whose data_end is the end marker row, the first blank row,
        or the sheet's row count
    """
    if region.is_absent:
        return region
    sheet = region.sheet
    columns = list(blank_columns) if blank_columns is not None else []
    columns = columns or None
    end_marker = definition.end_marker
    step = definition.rows_per_record

    row = region.data_start
    while row < sheet.row_count:
        if end_marker and sheet.row_matches(row, end_marker, MarkerMatch.EQUALS):
            break
        if (row - region.data_start) % step == 0 and sheet.is_blank(row, columns):
            break
        row += 1
    return region.with_end(row)
