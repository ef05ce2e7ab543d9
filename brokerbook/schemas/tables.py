"""
Table declaration schemas.

Declarative building blocks every statement format is made of:
- TableColumn: header phrase candidates identifying one logical column
- ColumnSpec: a named, typed column of a table (required or optional)
- TableDefinition: start/end markers, header layout, columns and row mapper
- ReportTableKind: the record streams a statement can produce

**Design Notes:**
- All declarations are immutable and built once at import time
- A format is a set of TableDefinition values, not a class hierarchy per table
- Header phrases are normalized (lowercase, single spaces) on construction
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from brokerbook.utils.text_utils import normalize_text


# =============================================================================
# ENUMS
# =============================================================================

class CellType(str, Enum):
    """Declared type of a column's cells, drives coercion in TableRow.value()."""
    TEXT = "text"
    INTEGER = "integer"
    LONG = "long"
    DECIMAL = "decimal"
    CURRENCY = "currency"  # Decimal with currency symbols/codes embedded in text
    TIMESTAMP = "timestamp"


class MarkerMatch(str, Enum):
    """How a marker text is compared with a normalized cell text."""
    EQUALS = "equals"
    PREFIX = "prefix"
    CONTAINS = "contains"

    def matches(self, text: str, marker: str) -> bool:
        """Compare normalized cell text with normalized marker."""
        if not marker or not text:
            return False
        if self is MarkerMatch.EQUALS:
            return text == marker
        if self is MarkerMatch.PREFIX:
            return text.startswith(marker)
        return marker in text


class ReportTableKind(str, Enum):
    """Record streams produced from one statement."""
    PORTFOLIO_PROPERTY = "portfolio_property"
    PORTFOLIO_CASH = "portfolio_cash"
    CASH_FLOW = "cash_flow"
    SECURITIES = "securities"
    TRANSACTIONS = "transactions"
    SECURITY_EVENT_CASH_FLOW = "security_event_cash_flow"
    SECURITY_QUOTES = "security_quotes"
    FX_RATES = "fx_rates"


# =============================================================================
# COLUMN DECLARATIONS
# =============================================================================

class TableColumn(BaseModel):
    """
    Header phrase candidates of one logical column, in priority order.

    Each candidate is a tuple of words that must all occur, in order, in the
    header text. A "word" may itself contain spaces ("комиссия брокера").

    Examples:
        >>> TableColumn.of("покупка", "продажа")        # header "Покупка/Продажа"
        >>> TableColumn.any_of(TableColumn.of("кол-во"), TableColumn.of("количество"))
    """
    model_config = ConfigDict(frozen=True)

    candidates: Tuple[Tuple[str, ...], ...] = Field(..., min_length=1)

    @field_validator("candidates", mode="before")
    @classmethod
    def _normalize_candidates(cls, v: Any) -> Tuple[Tuple[str, ...], ...]:
        result = []
        for candidate in v:
            words = tuple(normalize_text(word) for word in candidate)
            if not words or any(not word for word in words):
                raise ValueError(f"Header candidate must contain non-empty words: {candidate!r}")
            result.append(words)
        return tuple(result)

    @classmethod
    def of(cls, *words: str) -> TableColumn:
        """Column identified by a single candidate made of the given words."""
        return cls(candidates=(words,))

    @classmethod
    def any_of(cls, *columns: TableColumn) -> TableColumn:
        """Column matched by the first of several alternative columns' candidates."""
        candidates = []
        for column in columns:
            candidates.extend(column.candidates)
        return cls(candidates=tuple(candidates))


class ColumnSpec(BaseModel):
    """
    Named, typed column of a table.

    Optional columns that are not found in the header produce None values
    for every row instead of aborting the table.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Logical column name, unique within a table")
    column: TableColumn = Field(..., description="Header phrase candidates")
    cell_type: CellType = Field(default=CellType.TEXT, description="Declared cell type")
    required: bool = Field(default=True, description="Abort the table if the column is not found")

    def __str__(self) -> str:
        return self.name


def column(
    name: str,
    *words: str | TableColumn,
    cell_type: CellType = CellType.TEXT,
    required: bool = True
    ) -> ColumnSpec:
    """
    Shorthand for ColumnSpec declarations.

    Args:
        name: Logical column name
        *words: Words of a single header candidate, or TableColumn objects
            (alternative candidates in priority order)
        cell_type: Declared cell type
        required: False for columns some statement versions do not have
    """
    if words and all(isinstance(w, TableColumn) for w in words):
        table_column = TableColumn.any_of(*words)
    else:
        table_column = TableColumn.of(*words)
    return ColumnSpec(name=name, column=table_column, cell_type=cell_type, required=required)


# =============================================================================
# TABLE DECLARATIONS
# =============================================================================

class TableDefinition(BaseModel):
    """
    Declaration of one logical table of a statement format.

    Layout:
        <start marker row>            "Исполнение контрактов"
        <header_rows rows>            column headers (may be merged/split)
        <data rows>                   rows_per_record rows per record
        <end marker row or blank row> "Итого"

    With marker_is_header=True the marker is the first header cell itself
    (flat exports without a section title).

    row_mapper(row, report) returns one record, a sequence of records, or
    None to skip the row.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Start marker (section title)")
    columns: Tuple[ColumnSpec, ...] = Field(..., min_length=1)
    row_mapper: Callable[..., Any] = Field(..., description="Maps a TableRow to domain record(s)")
    end_marker: str = Field(default="", description="Terminal text marker; empty = end at first blank row")
    header_rows: int = Field(default=1, ge=1, description="Number of header rows")
    rows_per_record: int = Field(default=1, ge=1, description="Physical rows per logical record")
    marker_match: MarkerMatch = Field(default=MarkerMatch.EQUALS)
    marker_is_header: bool = Field(default=False)
    sheet_name: Optional[str] = Field(default=None, description="Worksheet name; None = first sheet")
    distinct: bool = Field(default=False, description="Drop duplicate records, keeping first occurrence")

    @model_validator(mode="after")
    def _validate_columns(self) -> TableDefinition:
        names = [c.name for c in self.columns]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Table '{self.name}' declares duplicate columns: {sorted(duplicates)}")
        return self

    @property
    def normalized_name(self) -> str:
        return normalize_text(self.name)

    @property
    def normalized_end_marker(self) -> str:
        return normalize_text(self.end_marker)

    @property
    def required_columns(self) -> Tuple[ColumnSpec, ...]:
        return tuple(c for c in self.columns if c.required)
