"""
Row extractor: typed access to the cells of one table record.

A TableRow covers one physical row, or a fixed window of rows_per_record rows
for multi-row records (getters take an `offset` inside the window). Cells are
read through the table's HeaderMapping and coerced per the column's CellType
using the statement's number locale, timestamp patterns and zone.

Empty cells:
- `default` given: the default is returned
- optional column (or unresolved optional column): None
- required column: MalformedCellError

Coercion failures always raise MalformedCellError with row, column and raw
text; there is no silent fallback.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from brokerbook.schemas.tables import CellType, ColumnSpec
from brokerbook.services.errors import MalformedCellError
from brokerbook.services.header_matcher import HeaderMapping
from brokerbook.services.workbook import Sheet
from brokerbook.utils.datetime_utils import TimestampParseError
from brokerbook.utils.decimal_utils import DecimalParseError, parse_decimal_value, parse_integer_value
from brokerbook.utils.text_utils import cell_to_text

if TYPE_CHECKING:
    from brokerbook.services.broker_report import BrokerReport

# Sentinel: getter called without a default
_NO_DEFAULT = object()

# Signed 32-bit INTEGER and 64-bit LONG ranges
_INT_MIN, _INT_MAX = -2 ** 31, 2 ** 31 - 1
_LONG_MIN, _LONG_MAX = -2 ** 63, 2 ** 63 - 1


class TableRow:
    """One record's window of rows inside a located table."""

    def __init__(
        self,
        sheet: Sheet,
        mapping: HeaderMapping,
        row_index: int,
        report: BrokerReport,
        rows_per_record: int = 1
        ):
        self.sheet = sheet
        self.mapping = mapping
        self.row_index = row_index
        self.report = report
        self.rows_per_record = rows_per_record

    @property
    def table_name(self) -> str:
        return self.mapping.table_name

    def _error(self, message: str, spec: ColumnSpec, raw: Any, offset: int, cause: Optional[Exception] = None):
        details = {"reason": str(cause)} if cause is not None else None
        return MalformedCellError(
            message,
            table_name=self.table_name,
            row_index=self.row_index + offset,
            column=spec.name,
            raw_text=cell_to_text(raw),
            details=details
            )

    def raw(self, spec: ColumnSpec, offset: int = 0) -> Any:
        """Raw cell value, None for an unresolved optional column."""
        if not 0 <= offset < self.rows_per_record:
            raise IndexError(f"Row offset {offset} outside record of {self.rows_per_record} rows")
        index = self.mapping.column_index(spec)
        if index is None:
            return None
        return self.sheet.cell(self.row_index + offset, index)

    def _get(
        self,
        spec: ColumnSpec,
        offset: int,
        default: Any,
        convert: Callable[[Any], Any],
        type_name: str
        ) -> Any:
        raw = self.raw(spec, offset)
        try:
            value = convert(raw) if cell_to_text(raw) else None
        except (DecimalParseError, TimestampParseError, ValueError) as e:
            raise self._error(f"Cell is not a valid {type_name}", spec, raw, offset, e) from e
        if value is not None:
            return value
        if default is not _NO_DEFAULT:
            return default
        if not spec.required or not self.mapping.is_resolved(spec):
            return None
        raise self._error(f"Required {type_name} cell is empty", spec, raw, offset)

    # =========================================================================
    # TYPED GETTERS
    # =========================================================================

    def get_str(self, spec: ColumnSpec, default: Any = _NO_DEFAULT, offset: int = 0) -> Optional[str]:
        return self._get(spec, offset, default, cell_to_text, "text")

    def get_int(self, spec: ColumnSpec, default: Any = _NO_DEFAULT, offset: int = 0) -> Optional[int]:
        return self._get(spec, offset, default, lambda v: self._to_int(v, _INT_MIN, _INT_MAX), "integer")

    def get_long(self, spec: ColumnSpec, default: Any = _NO_DEFAULT, offset: int = 0) -> Optional[int]:
        return self._get(spec, offset, default, lambda v: self._to_int(v, _LONG_MIN, _LONG_MAX), "long integer")

    def get_decimal(self, spec: ColumnSpec, default: Any = _NO_DEFAULT, offset: int = 0) -> Optional[Decimal]:
        return self._get(
            spec, offset, default,
            lambda v: parse_decimal_value(v, locale=self.report.number_locale),
            "decimal"
            )

    def get_currency_value(self, spec: ColumnSpec, default: Any = _NO_DEFAULT, offset: int = 0) -> Optional[Decimal]:
        """Decimal with currency symbols/codes stripped ("1 000,00 RUB")."""
        return self._get(
            spec, offset, default,
            lambda v: parse_decimal_value(v, locale=self.report.number_locale, strip_currency=True),
            "currency value"
            )

    def get_timestamp(self, spec: ColumnSpec, default: Any = _NO_DEFAULT, offset: int = 0) -> Optional[datetime]:
        """Aware datetime in the statement zone."""
        return self._get(spec, offset, default, self.report.convert_to_instant, "timestamp")

    def _to_int(self, value: Any, lower: int, upper: int) -> Optional[int]:
        number = parse_integer_value(value, locale=self.report.number_locale)
        if number is not None and not lower <= number <= upper:
            raise ValueError(f"{number} is out of range")
        return number

    # =========================================================================
    # GENERIC ACCESS
    # =========================================================================

    def value(self, spec: ColumnSpec, default: Any = _NO_DEFAULT, offset: int = 0) -> Any:
        """Cell coerced per the column's declared CellType."""
        getter = {
            CellType.TEXT: self.get_str,
            CellType.INTEGER: self.get_int,
            CellType.LONG: self.get_long,
            CellType.DECIMAL: self.get_decimal,
            CellType.CURRENCY: self.get_currency_value,
            CellType.TIMESTAMP: self.get_timestamp,
            }[spec.cell_type]
        return getter(spec, default=default, offset=offset)

    def values(self, offset: int = 0) -> Dict[str, Any]:
        """Raw cell values of the row, by column name."""
        return {spec.name: self.raw(spec, offset) for spec in self.mapping.columns}

    def __repr__(self) -> str:
        return f"TableRow(table={self.table_name!r}, row={self.row_index})"
