"""
In-memory spreadsheet document.

A statement is a collection of named worksheets, each a 2-D grid of typed
cells (text, number, formula-evaluated value, date, blank). Sheets are read
once into plain Python lists; row and column indices are 0-based.

Merged ranges are expanded: every cell covered by a merged range returns the
range's value, so a header merged across two columns is seen by both.

Usage:
    workbook = Workbook.load(Path("report.xlsx"))
    sheet = workbook.first_sheet
    row = sheet.find_row("исполнение контрактов")
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import structlog
from openpyxl import load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from brokerbook.schemas.tables import MarkerMatch
from brokerbook.utils.text_utils import cell_to_text, normalize_text

logger = structlog.get_logger(__name__)


class Sheet:
    """One worksheet as a rectangular grid of raw cell values."""

    def __init__(self, name: str, rows: Sequence[Sequence[Any]]):
        self.name = name
        self.width = max((len(r) for r in rows), default=0)
        self._rows: List[List[Any]] = [list(r) + [None] * (self.width - len(r)) for r in rows]
        self._texts: Dict[int, List[str]] = {}

    @classmethod
    def from_worksheet(cls, worksheet: Worksheet) -> Sheet:
        """Read an openpyxl worksheet, expanding merged ranges."""
        max_row = worksheet.max_row
        max_col = worksheet.max_column
        # min_row/min_col pinned to 1 so list indices match sheet coordinates
        rows = [
            list(r) for r in worksheet.iter_rows(
                min_row=1, max_row=max_row, min_col=1, max_col=max_col, values_only=True
                )
            ]
        for merged in worksheet.merged_cells.ranges:
            value = rows[merged.min_row - 1][merged.min_col - 1] if merged.min_row <= len(rows) else None
            for r in range(merged.min_row - 1, min(merged.max_row, len(rows))):
                for c in range(merged.min_col - 1, min(merged.max_col, max_col)):
                    rows[r][c] = value
        return cls(worksheet.title, rows)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    def cell(self, row: int, col: int) -> Any:
        """Raw cell value, None outside the grid."""
        if 0 <= row < len(self._rows) and 0 <= col < self.width:
            return self._rows[row][col]
        return None

    def cell_text(self, row: int, col: int) -> str:
        """Stripped text of a cell ("" for blank)."""
        return cell_to_text(self.cell(row, col))

    def row_texts(self, row: int) -> List[str]:
        """Normalized texts of all cells of a row."""
        if not 0 <= row < len(self._rows):
            return []
        texts = self._texts.get(row)
        if texts is None:
            texts = self._texts[row] = [normalize_text(v) for v in self._rows[row]]
        return texts

    def is_blank(self, row: int, columns: Optional[Iterable[int]] = None) -> bool:
        """True if every cell of the row (or of the given columns) is blank."""
        if columns is None:
            columns = range(self.width)
        return all(not self.cell_text(row, c) for c in columns)

    def row_matches(self, row: int, marker: str, match: MarkerMatch = MarkerMatch.EQUALS) -> bool:
        """True if any cell of the row matches the (normalized) marker."""
        marker = normalize_text(marker)
        return any(match.matches(text, marker) for text in self.row_texts(row))

    def find_row(
        self,
        marker: str,
        start: int = 0,
        end: Optional[int] = None,
        match: MarkerMatch = MarkerMatch.EQUALS
        ) -> Optional[int]:
        """
        First row in [start, end) having a cell that matches the marker.

        Returns:
            Row index, or None if no row matches
        """
        end = self.row_count if end is None else min(end, self.row_count)
        for row in range(max(start, 0), end):
            if self.row_matches(row, marker, match):
                return row
        return None

    def _find_cell(self, marker: str, match: MarkerMatch) -> Optional[tuple]:
        marker = normalize_text(marker)
        for row in range(self.row_count):
            for col, text in enumerate(self.row_texts(row)):
                if match.matches(text, marker):
                    return row, col
        return None

    def find_value_right_of(self, marker: str, match: MarkerMatch = MarkerMatch.PREFIX) -> Optional[Any]:
        """First non-blank value to the right of the first cell matching the marker."""
        found = self._find_cell(marker, match)
        if found is None:
            return None
        row, col = found
        marker_value = self.cell(row, col)
        for c in range(col + 1, self.width):
            value = self.cell(row, c)
            # Skip copies of the marker produced by merged ranges
            if cell_to_text(value) and value != marker_value:
                return value
        return None

    def find_value_below(self, marker: str, match: MarkerMatch = MarkerMatch.EQUALS) -> Optional[Any]:
        """First non-blank value below the first cell matching the marker."""
        found = self._find_cell(marker, match)
        if found is None:
            return None
        row, col = found
        for r in range(row + 1, self.row_count):
            value = self.cell(r, col)
            if cell_to_text(value):
                return value
        return None

    def contains_text(self, text: str, max_rows: Optional[int] = None) -> bool:
        """True if any cell in the first max_rows rows contains the text."""
        text = normalize_text(text)
        end = self.row_count if max_rows is None else min(max_rows, self.row_count)
        return any(
            text in cell_text
            for row in range(end)
            for cell_text in self.row_texts(row)
            )

    def __repr__(self) -> str:
        return f"Sheet(name={self.name!r}, rows={self.row_count}, width={self.width})"


class Workbook:
    """A spreadsheet document: ordered named sheets."""

    def __init__(self, sheets: Sequence[Sheet], path: Optional[Path] = None):
        if not sheets:
            raise ValueError("Workbook must contain at least one sheet")
        self.sheets: List[Sheet] = list(sheets)
        self.path = path
        self._by_name: Dict[str, Sheet] = {s.name: s for s in self.sheets}

    @classmethod
    def load(cls, path: Path) -> Workbook:
        """
        Load an .xlsx file.

        Formula cells yield their cached (evaluated) values.

        Raises:
            FileNotFoundError: File does not exist
            openpyxl/zipfile errors: File is not a valid workbook
        """
        path = Path(path)
        book = load_workbook(path, data_only=True)
        try:
            sheets = [Sheet.from_worksheet(ws) for ws in book.worksheets]
        finally:
            book.close()
        logger.debug("Workbook loaded", path=str(path), sheets=[s.name for s in sheets])
        return cls(sheets, path=path)

    @classmethod
    def from_rows(cls, sheets: Dict[str, Sequence[Sequence[Any]]], path: Optional[Path] = None) -> Workbook:
        """Build a workbook from {sheet name: rows} (in-memory documents, tests)."""
        return cls([Sheet(name, rows) for name, rows in sheets.items()], path=path)

    @property
    def first_sheet(self) -> Sheet:
        return self.sheets[0]

    @property
    def sheet_names(self) -> List[str]:
        return [s.name for s in self.sheets]

    def get_sheet(self, name: Optional[str] = None) -> Optional[Sheet]:
        """Sheet by name; the first sheet when name is None."""
        if name is None:
            return self.first_sheet
        return self._by_name.get(name)

    def contains_text(self, text: str, max_rows: Optional[int] = None) -> bool:
        """True if any sheet contains the text in its first max_rows rows."""
        return any(s.contains_text(text, max_rows) for s in self.sheets)
