"""
Header matcher: resolves declared columns to physical column indices.

Matching rules:
- Header texts are compared case-insensitively with whitespace normalized
- A candidate matches when all its words occur, in order, in the text
- The text of a column is tried cell by cell, then as the vertical run of all
  header rows joined (headers split across merged/stacked cells)
- Candidates are tried in priority order; the first one matching anywhere wins
- Columns are resolved in declaration order and a physical column is claimed
  by the first descriptor matching it ("контракт" does not steal
  "Вид контракта" from a previously declared "вид контракта" column)
- A required column with no match raises MissingColumnError; an optional one
  maps to None

A descriptor that also matches a column claimed by an earlier descriptor is a
table definition overlap: it is resolved by the claiming rule, logged as a
warning and kept in HeaderMapping.overlaps.
"""
from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

import structlog

from brokerbook.schemas.tables import ColumnSpec, TableColumn
from brokerbook.services.errors import MissingColumnError
from brokerbook.services.workbook import Sheet
from brokerbook.utils.text_utils import contains_words_in_order

logger = structlog.get_logger(__name__)


class HeaderText(NamedTuple):
    """Header text of a physical column and the sheet rows it was read from."""
    text: str
    rows: Tuple[int, ...]


class ColumnMatch(NamedTuple):
    index: int
    rows: Tuple[int, ...]


class HeaderMapping:
    """
    Resolved ColumnSpec -> physical column of one table instance.

    Built once per table and reused for every row. Besides the column index,
    each resolved spec keeps the header rows whose text matched it: one row
    for a single cell, several for a vertical run of a multi-row header.
    """

    def __init__(
        self,
        table_name: str,
        header_start: int,
        header_rows: int,
        matches: Dict[ColumnSpec, Optional[ColumnMatch]],
        overlaps: Optional[Dict[str, Tuple[str, ...]]] = None
        ):
        self.table_name = table_name
        self.header_start = header_start
        self.header_rows = header_rows
        self._matches = dict(matches)
        self.overlaps: Dict[str, Tuple[str, ...]] = dict(overlaps or {})

    def _match(self, spec: ColumnSpec) -> Optional[ColumnMatch]:
        if spec not in self._matches:
            raise KeyError(f"Column '{spec.name}' is not declared for table '{self.table_name}'")
        return self._matches[spec]

    def column_index(self, spec: ColumnSpec) -> Optional[int]:
        """
        Physical column of a spec, None for an unresolved optional column.

        Raises:
            KeyError: If the spec was not declared for this table
        """
        match = self._match(spec)
        return match.index if match else None

    def matched_rows(self, spec: ColumnSpec) -> Tuple[int, ...]:
        """Sheet rows of the header text that matched the spec, () if unresolved."""
        match = self._match(spec)
        return match.rows if match else ()

    def header_row(self, spec: ColumnSpec) -> Optional[int]:
        """Sheet row of the matching header cell (top row of a vertical run)."""
        rows = self.matched_rows(spec)
        return rows[0] if rows else None

    def is_resolved(self, spec: ColumnSpec) -> bool:
        return self._matches.get(spec) is not None

    @property
    def columns(self) -> List[ColumnSpec]:
        return list(self._matches)

    def required_indices(self) -> List[int]:
        """Physical columns of the resolved required specs."""
        return [m.index for spec, m in self._matches.items() if spec.required and m is not None]

    def resolved_indices(self) -> List[int]:
        return [m.index for m in self._matches.values() if m is not None]

    def as_dict(self) -> Dict[str, Optional[int]]:
        """{column name: index}, for logs."""
        return {spec.name: (m.index if m else None) for spec, m in self._matches.items()}

    def __repr__(self) -> str:
        return f"HeaderMapping(table={self.table_name!r}, columns={self.as_dict()})"


def _header_texts(sheet: Sheet, header_start: int, header_rows: int) -> List[List[HeaderText]]:
    """Per physical column: each header cell text, then the vertical run."""
    row_indices = range(header_start, header_start + header_rows)
    rows = [(r, sheet.row_texts(r)) for r in row_indices]
    texts: List[List[HeaderText]] = []
    for col in range(sheet.width):
        cells = [HeaderText(row[col], (r,)) for r, row in rows if col < len(row) and row[col]]
        column_texts = list(cells)
        if len(cells) > 1:
            # Merged headers repeat the top text; keep one copy per distinct stacked text
            stacked = [c.text for i, c in enumerate(cells) if i == 0 or c.text != cells[i - 1].text]
            column_texts.append(HeaderText(" ".join(stacked), tuple(r for c in cells for r in c.rows)))
        texts.append(column_texts)
    return texts


def _matching_text(column: TableColumn, column_texts: Sequence[HeaderText]) -> Optional[HeaderText]:
    for candidate in column.candidates:
        for header in column_texts:
            if contains_words_in_order(header.text, candidate):
                return header
    return None


def _find_column(
    column: TableColumn,
    texts: Sequence[Sequence[HeaderText]],
    claimed: Dict[int, str]
    ) -> Optional[ColumnMatch]:
    for candidate in column.candidates:
        for index, column_texts in enumerate(texts):
            if index in claimed:
                continue
            for header in column_texts:
                if contains_words_in_order(header.text, candidate):
                    return ColumnMatch(index, header.rows)
    return None


def resolve_header(
    sheet: Sheet,
    header_start: int,
    header_rows: int,
    columns: Sequence[ColumnSpec],
    table_name: str = ""
    ) -> HeaderMapping:
    """
    Resolve declared columns against a worksheet header region.

    Args:
        sheet: Worksheet holding the table
        header_start: First header row index
        header_rows: Number of header rows
        columns: Declared columns, in declaration order
        table_name: Table name for error context

    Returns:
        HeaderMapping for the table instance

    Raises:
        MissingColumnError: If a required column matches nowhere
    """
    texts = _header_texts(sheet, header_start, header_rows)
    claimed: Dict[int, str] = {}
    matches: Dict[ColumnSpec, Optional[ColumnMatch]] = {}
    overlaps: Dict[str, Tuple[str, ...]] = {}

    for spec in columns:
        shadowed = tuple(
            owner for index, owner in claimed.items()
            if _matching_text(spec.column, texts[index]) is not None
            )
        if shadowed:
            overlaps[spec.name] = shadowed
            logger.warning(
                "Header cell matched by several columns",
                table_name=table_name,
                column=spec.name,
                claimed_by=list(shadowed)
                )

        match = _find_column(spec.column, texts, claimed)
        if match is None:
            if spec.required:
                raise MissingColumnError(
                    "Required column not found in table header",
                    table_name=table_name,
                    row_index=header_start,
                    column=spec.name,
                    details={"candidates": [" ".join(c) for c in spec.column.candidates]}
                    )
            logger.debug("Optional column not found", table_name=table_name, column=spec.name)
        else:
            claimed[match.index] = spec.name
        matches[spec] = match

    mapping = HeaderMapping(table_name, header_start, header_rows, matches, overlaps)
    logger.debug("Header resolved", table_name=table_name, columns=mapping.as_dict())
    return mapping
