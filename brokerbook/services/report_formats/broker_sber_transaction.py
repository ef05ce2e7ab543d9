"""
Sberbank Transaction Export Plugin.

Parses the flat trade list Sberbank Online exports as .xlsx.

**File Format Characteristics:**
- No title block: the first row is the header, starting with "Номер договора"
- One trade per row, the contract number repeated on every row
- Buy/sell in the "Операция" column

**Tables (one sheet region, read twice):**
- SECURITIES: distinct instruments of the trades
- TRANSACTIONS: the trades

The export holds no cash, cash flow, coupon/dividend, quote or FX rate
data: those kinds are declared absent.
"""
from __future__ import annotations

import re
from decimal import Decimal
from typing import Mapping, Optional, Tuple

from brokerbook.schemas.records import Security, SecurityTransaction, SecurityType
from brokerbook.schemas.tables import CellType, ReportTableKind, TableDefinition, column
from brokerbook.services.broker_report import BrokerReport
from brokerbook.services.errors import UnrecognizedCategoryError
from brokerbook.services.provider_registry import FormatRegistry, register_provider
from brokerbook.services.report_format import ReportFormat
from brokerbook.services.table_row import TableRow
from brokerbook.services.workbook import Workbook

# =============================================================================
# CONSTANTS
# =============================================================================

FIRST_HEADER = "Номер договора"
HEADER_SCAN_ROWS = 5

CONTRACT = column("CONTRACT", "номер договора")
TRADE_ID = column("TRADE_ID", "номер сделки")
DATE_TIME = column("DATE_TIME", "дата заключения", cell_type=CellType.TIMESTAMP)
OPERATION = column("OPERATION", "операция")
NAME = column("NAME", "краткое наименование", required=False)
CODE = column("CODE", "код финансового инструмента")
TYPE = column("TYPE", "тип финансового инструмента", required=False)
COUNT = column("COUNT", "количество", cell_type=CellType.INTEGER)
VALUE = column("VALUE", "объем сделки", cell_type=CellType.DECIMAL)
ACCRUED_INTEREST = column("ACCRUED_INTEREST", "нкд", cell_type=CellType.DECIMAL, required=False)
CURRENCY = column("CURRENCY", "валюта", cell_type=CellType.TEXT)
MARKET_COMMISSION = column("MARKET_COMMISSION", "комиссия торговой системы",
                           cell_type=CellType.DECIMAL, required=False)
BROKER_COMMISSION = column("BROKER_COMMISSION", "комиссия банка", cell_type=CellType.DECIMAL, required=False)

OPERATIONS = {"покупка": 1, "продажа": -1}

SECURITY_TYPES = {
    "акция": SecurityType.STOCK,
    "депозитарная расписка": SecurityType.STOCK,
    "пай": SecurityType.STOCK,
    "облигация": SecurityType.BOND,
    }

_ISIN_RE = re.compile(r"^[A-Z]{2}[A-Z0-9]{9}[0-9]$")


def _security_type(row: TableRow) -> SecurityType:
    text = (row.get_str(TYPE) or "").lower()
    for prefix, security_type in SECURITY_TYPES.items():
        if text.startswith(prefix):
            return security_type
    return SecurityType.STOCK_OR_BOND


def _declare(row: TableRow, report: BrokerReport) -> int:
    return report.registrar.declare_security(row.get_str(CODE), _security_type(row), row.get_str(NAME))


# =============================================================================
# ROW MAPPERS
# =============================================================================

def map_security_row(row: TableRow, report: BrokerReport) -> Security:
    code = row.get_str(CODE).upper()
    is_isin = _ISIN_RE.match(code) is not None
    return Security(
        id=_declare(row, report),
        type=_security_type(row),
        isin=code if is_isin else None,
        ticker=None if is_isin else code,
        name=row.get_str(NAME)
        )


def map_transaction_row(row: TableRow, report: BrokerReport) -> SecurityTransaction:
    """
    Trade row → SecurityTransaction.

    Buy: count > 0, value and accrued interest < 0. Sell: the opposite.
    """
    operation = row.get_str(OPERATION).lower()
    sign = OPERATIONS.get(operation)
    if sign is None:
        raise UnrecognizedCategoryError(
            "Unknown trade operation",
            row_index=row.row_index,
            column=OPERATION.name,
            raw_text=operation
            )
    currency = report.convert_to_currency(row.get_str(CURRENCY))
    commission = -(row.get_decimal(MARKET_COMMISSION, default=Decimal("0"))
                   + row.get_decimal(BROKER_COMMISSION, default=Decimal("0")))
    return SecurityTransaction(
        trade_id=row.get_str(TRADE_ID),
        portfolio=report.portfolio,
        security=_declare(row, report),
        timestamp=row.get_timestamp(DATE_TIME),
        count=sign * abs(row.get_int(COUNT)),
        value=-sign * abs(row.get_decimal(VALUE)),
        accrued_interest=-sign * abs(row.get_decimal(ACCRUED_INTEREST, default=Decimal("0"))),
        commission=commission,
        value_currency=currency,
        commission_currency=currency
        )


# =============================================================================
# TABLES
# =============================================================================

SECURITIES_TABLE = TableDefinition(
    name=FIRST_HEADER,
    marker_is_header=True,
    columns=(CONTRACT, CODE, NAME, TYPE),
    row_mapper=map_security_row,
    distinct=True
    )

TRANSACTIONS_TABLE = TableDefinition(
    name=FIRST_HEADER,
    marker_is_header=True,
    columns=(
        CONTRACT, TRADE_ID, DATE_TIME, OPERATION, NAME, CODE, TYPE, COUNT,
        VALUE, ACCRUED_INTEREST, CURRENCY, MARKET_COMMISSION, BROKER_COMMISSION,
        ),
    row_mapper=map_transaction_row
    )

TABLES: Mapping[ReportTableKind, Tuple[TableDefinition, ...]] = {
    ReportTableKind.PORTFOLIO_PROPERTY: (),
    ReportTableKind.PORTFOLIO_CASH: (),
    ReportTableKind.CASH_FLOW: (),
    ReportTableKind.SECURITIES: (SECURITIES_TABLE,),
    ReportTableKind.TRANSACTIONS: (TRANSACTIONS_TABLE,),
    ReportTableKind.SECURITY_EVENT_CASH_FLOW: (),
    ReportTableKind.SECURITY_QUOTES: (),
    ReportTableKind.FX_RATES: (),
    }


@register_provider(FormatRegistry)
class SberTransactionFormat(ReportFormat):
    """Sberbank trade export (.xlsx)."""

    @property
    def provider_code(self) -> str:
        return "broker_sber_transaction"

    @property
    def provider_name(self) -> str:
        return "Sberbank transaction export"

    @property
    def description(self) -> str:
        return "Sberbank Online trade list export (.xlsx): securities and trades"

    @property
    def detection_priority(self) -> int:
        return 90

    @property
    def table_definitions(self) -> Mapping[ReportTableKind, Tuple[TableDefinition, ...]]:
        return TABLES

    def can_parse(self, workbook: Workbook) -> bool:
        sheet = workbook.first_sheet
        return (sheet.find_row(FIRST_HEADER, end=HEADER_SCAN_ROWS) is not None
                and sheet.contains_text("код финансового инструмента", max_rows=HEADER_SCAN_ROWS))

    def find_portfolio(self, workbook: Workbook) -> Optional[str]:
        return self._portfolio_text(workbook.first_sheet.find_value_below(FIRST_HEADER))
