"""
PSB (Promsvyazbank) Broker Report Plugin.

Parses the derivatives part of PSB's .xlsx broker report.

**File Format Characteristics:**
- Title block with bank name and "Договор" followed by the contract number
- Sections introduced by a title row, closed by an "Итого" row
- Timestamps printed as dd.mm.yyyy HH:MM[:SS], Moscow time
- FORTS settles in roubles only

**Tables:**
- "Исполнение контрактов" → TRANSACTIONS (derivative expirations)

Other record kinds are not read from this report.

**Expiration row rules:**
- Direction "покупка" is a buy: count > 0, value and points negative;
  "продажа" is a sell: count < 0, value and points positive
- "фьючерс": value from the amount column, points = quote × count
- "опцион": no money at expiration, value = points = 0
- commission = -(exchange commission + broker commission)
"""
from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Optional, Tuple

import structlog

from brokerbook.schemas.records import DerivativeTransaction
from brokerbook.schemas.tables import CellType, MarkerMatch, ReportTableKind, TableDefinition, column
from brokerbook.services.broker_report import BrokerReport
from brokerbook.services.errors import UnrecognizedCategoryError
from brokerbook.services.provider_registry import FormatRegistry, register_provider
from brokerbook.services.report_format import ReportFormat
from brokerbook.services.table_row import TableRow
from brokerbook.services.workbook import Workbook

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

BANK_TITLE = "промсвязьбанк"
PORTFOLIO_MARKER = "договор"
FORTS_CURRENCY = "RUB"

# Expiration table columns
DATE_TIME = column("DATE_TIME", "дата и время", cell_type=CellType.TIMESTAMP)
TRADE_ID = column("TRADE_ID", "номер сделки", cell_type=CellType.LONG)
TYPE = column("TYPE", "вид контракта")
CONTRACT = column("CONTRACT", "контракт")
DIRECTION = column("DIRECTION", "покупка", "продажа")
COUNT = column("COUNT", "кол-во", cell_type=CellType.INTEGER)
QUOTE = column("QUOTE", "цена", "пункты", cell_type=CellType.DECIMAL)
VALUE = column("VALUE", "сумма", cell_type=CellType.DECIMAL)
MARKET_COMMISSION = column("MARKET_COMMISSION", "комиссия торговой системы", cell_type=CellType.DECIMAL)
BROKER_COMMISSION = column("BROKER_COMMISSION", "комиссия брокера", cell_type=CellType.DECIMAL)

DIRECTIONS = {"покупка": 1, "продажа": -1}
FUTURES = "фьючерс"
OPTION = "опцион"


# =============================================================================
# ROW MAPPERS
# =============================================================================

def map_expiration_row(row: TableRow, report: BrokerReport) -> DerivativeTransaction:
    """Derivative expiration row → DerivativeTransaction."""
    direction = row.get_str(DIRECTION).lower()
    if direction not in DIRECTIONS:
        raise UnrecognizedCategoryError(
            "Unknown trade direction",
            row_index=row.row_index,
            column=DIRECTION.name,
            raw_text=direction
            )
    is_buy = DIRECTIONS[direction] > 0

    count = row.get_int(COUNT)
    contract_type = row.get_str(TYPE).lower()
    if contract_type == FUTURES:
        value = row.get_decimal(VALUE)
        value_in_points = row.get_decimal(QUOTE) * count
    elif contract_type == OPTION:
        value = value_in_points = Decimal("0")
    else:
        raise UnrecognizedCategoryError(
            "Unknown contract type",
            row_index=row.row_index,
            column=TYPE.name,
            raw_text=contract_type
            )
    if is_buy:
        value = -value
        value_in_points = -value_in_points

    commission = -(row.get_decimal(MARKET_COMMISSION, default=Decimal("0"))
                   + row.get_decimal(BROKER_COMMISSION, default=Decimal("0")))

    security = report.registrar.declare_derivative(row.get_str(CONTRACT))
    return DerivativeTransaction(
        trade_id=str(row.get_long(TRADE_ID)),
        portfolio=report.portfolio,
        security=security,
        timestamp=row.get_timestamp(DATE_TIME),
        count=count if is_buy else -count,
        value_in_points=value_in_points,
        value=value,
        commission=commission,
        value_currency=FORTS_CURRENCY,
        commission_currency=FORTS_CURRENCY
        )


# =============================================================================
# TABLES
# =============================================================================

DERIVATIVE_EXPIRATION_TABLE = TableDefinition(
    name="Исполнение контрактов",
    end_marker="Итого",
    columns=(
        DATE_TIME, TRADE_ID, TYPE, CONTRACT, DIRECTION, COUNT,
        QUOTE, VALUE, MARKET_COMMISSION, BROKER_COMMISSION,
        ),
    row_mapper=map_expiration_row
    )

TABLES: Mapping[ReportTableKind, Tuple[TableDefinition, ...]] = {
    ReportTableKind.PORTFOLIO_PROPERTY: (),
    ReportTableKind.PORTFOLIO_CASH: (),
    ReportTableKind.CASH_FLOW: (),
    ReportTableKind.SECURITIES: (),
    ReportTableKind.TRANSACTIONS: (DERIVATIVE_EXPIRATION_TABLE,),
    ReportTableKind.SECURITY_EVENT_CASH_FLOW: (),
    ReportTableKind.SECURITY_QUOTES: (),
    ReportTableKind.FX_RATES: (),
    }


@register_provider(FormatRegistry)
class PsbReportFormat(ReportFormat):
    """PSB broker report (.xlsx)."""

    @property
    def provider_code(self) -> str:
        return "broker_psb"

    @property
    def provider_name(self) -> str:
        return "PSB broker report"

    @property
    def description(self) -> str:
        return "Promsvyazbank broker report (.xlsx): derivative contract expirations"

    @property
    def timestamp_formats(self) -> Tuple[str, ...]:
        return ("%d.%m.%Y %H:%M:%S", "%d.%m.%Y %H:%M")

    @property
    def table_definitions(self) -> Mapping[ReportTableKind, Tuple[TableDefinition, ...]]:
        return TABLES

    def can_parse(self, workbook: Workbook) -> bool:
        return self._title_block_contains(workbook.first_sheet, BANK_TITLE, PORTFOLIO_MARKER)

    def find_portfolio(self, workbook: Workbook) -> Optional[str]:
        value = workbook.first_sheet.find_value_right_of(PORTFOLIO_MARKER, MarkerMatch.PREFIX)
        portfolio = self._portfolio_text(value)
        logger.debug("Portfolio lookup", format=self.provider_code, portfolio=portfolio)
        return portfolio
