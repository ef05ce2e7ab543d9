"""
Uralsib Broker Report Plugin.

Reads the cash position section of Uralsib's .xlsx broker report.

**Tables:**
- "ПОЗИЦИЯ ПО ДЕНЕЖНЫМ СРЕДСТВАМ" → PORTFOLIO_CASH
  Two header rows (group titles over column titles), one currency per row,
  the table ends at the first blank row. Balances are not split by
  sub-account, so every record has section "all".

Currencies are printed with legacy codes ("RUR").
"""
from __future__ import annotations

from typing import Mapping, Optional, Tuple

from brokerbook.schemas.records import PortfolioCash
from brokerbook.schemas.tables import CellType, MarkerMatch, ReportTableKind, TableDefinition, column
from brokerbook.services.broker_report import BrokerReport
from brokerbook.services.provider_registry import FormatRegistry, register_provider
from brokerbook.services.report_format import ReportFormat
from brokerbook.services.table_row import TableRow
from brokerbook.services.workbook import Workbook

BROKER_TITLE = "уралсиб"
PORTFOLIO_MARKER = "договор"

VALUE = column("VALUE", "исходящий остаток", cell_type=CellType.CURRENCY)
CURRENCY = column("CURRENCY", "код валюты")


def map_cash_row(row: TableRow, report: BrokerReport) -> PortfolioCash:
    return PortfolioCash(
        portfolio=report.portfolio,
        section="all",
        value=row.get_currency_value(VALUE),
        currency=report.convert_to_currency(row.get_str(CURRENCY))
        )


CASH_TABLE = TableDefinition(
    name="ПОЗИЦИЯ ПО ДЕНЕЖНЫМ СРЕДСТВАМ",
    end_marker="",
    header_rows=2,
    columns=(VALUE, CURRENCY),
    row_mapper=map_cash_row
    )

TABLES: Mapping[ReportTableKind, Tuple[TableDefinition, ...]] = {
    ReportTableKind.PORTFOLIO_CASH: (CASH_TABLE,),
    }


@register_provider(FormatRegistry)
class UralsibReportFormat(ReportFormat):
    """Uralsib broker report (.xlsx)."""

    @property
    def provider_code(self) -> str:
        return "broker_uralsib"

    @property
    def provider_name(self) -> str:
        return "Uralsib broker report"

    @property
    def description(self) -> str:
        return "Uralsib broker report (.xlsx): cash positions"

    @property
    def table_definitions(self) -> Mapping[ReportTableKind, Tuple[TableDefinition, ...]]:
        return TABLES

    def can_parse(self, workbook: Workbook) -> bool:
        return self._title_block_contains(workbook.first_sheet, BROKER_TITLE, PORTFOLIO_MARKER)

    def find_portfolio(self, workbook: Workbook) -> Optional[str]:
        return self._portfolio_text(workbook.first_sheet.find_value_right_of(PORTFOLIO_MARKER, MarkerMatch.PREFIX))
