"""
Per-statement parsing context.

A BrokerReport bundles what every table and row mapper of one statement
needs: the workbook, the portfolio id, the security registrar handle and the
format's locale conventions. It is built fresh for each statement and never
shared between threads, except for the registrar it points to.
"""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from brokerbook.schemas.tables import TableDefinition
from brokerbook.services.security_registrar import SecurityRegistrar
from brokerbook.services.workbook import Sheet, Workbook
from brokerbook.utils.currency_utils import normalize_currency_code
from brokerbook.utils.datetime_utils import DEFAULT_TIMESTAMP_FORMATS, get_zone, parse_timestamp


class BrokerReport:
    """Statement being parsed: document, portfolio and conventions."""

    def __init__(
        self,
        workbook: Workbook,
        portfolio: str,
        registrar: SecurityRegistrar,
        number_locale: str = "ru_RU",
        timestamp_formats: Iterable[str] = DEFAULT_TIMESTAMP_FORMATS,
        timezone_name: str = "Europe/Moscow",
        format_code: Optional[str] = None
        ):
        if not portfolio:
            raise ValueError("portfolio must not be empty")
        self.workbook = workbook
        self.portfolio = portfolio
        self.registrar = registrar
        self.number_locale = number_locale
        self.timestamp_formats = tuple(timestamp_formats)
        self.zone = get_zone(timezone_name)
        self.format_code = format_code

    @property
    def path(self) -> Optional[Path]:
        return self.workbook.path

    def sheet_for(self, definition: TableDefinition) -> Optional[Sheet]:
        """Worksheet of a table: its declared sheet, or the first sheet."""
        return self.workbook.get_sheet(definition.sheet_name)

    def convert_to_instant(self, value: Any) -> Optional[datetime]:
        """
        Parse a statement timestamp in the statement zone.

        Raises:
            TimestampParseError: Value matches none of the format's patterns
        """
        return parse_timestamp(value, self.timestamp_formats, self.zone)

    def convert_to_currency(self, value: Any) -> str:
        """ISO 4217 code of a statement currency text ("RUR" -> "RUB")."""
        return normalize_currency_code(value)

    def __repr__(self) -> str:
        return f"BrokerReport(format={self.format_code!r}, portfolio={self.portfolio!r}, path={self.path})"
