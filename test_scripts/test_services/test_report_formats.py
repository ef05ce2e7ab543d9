"""
Broker Format Tests.

Test Categories:
1. PSB derivative expirations (PSB-*)
2. Sberbank trade export (SB-*)
3. Uralsib cash positions (UR-*)

Statements are built in memory from statement_samples row layouts.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from brokerbook.schemas.records import (
    DerivativeTransaction,
    PortfolioCash,
    Security,
    SecurityTransaction,
    SecurityType,
    )
from brokerbook.schemas.tables import ReportTableKind
from brokerbook.services.errors import StatementParseError, UnrecognizedCategoryError
from brokerbook.services.header_matcher import resolve_header
from brokerbook.services.provider_registry import get_format
from brokerbook.services.report_tables import ReportTables
from brokerbook.services.security_registrar import InMemorySecurityRegistrar
from brokerbook.services.table_locator import locate_table
from brokerbook.services.workbook import Workbook
from statement_samples import (
    PSB_HEADER,
    PSB_PORTFOLIO,
    SBER_PORTFOLIO,
    SBER_TRADES,
    URALSIB_PORTFOLIO,
    psb_expiration_row,
    psb_workbook,
    sber_trade_row,
    sber_workbook,
    uralsib_workbook,
    )

MOSCOW = ZoneInfo("Europe/Moscow")


def _tables(format_code: str, workbook: Workbook, registrar=None) -> ReportTables:
    report_format = get_format(format_code)
    report = report_format.create_report(
        workbook, registrar if registrar is not None else InMemorySecurityRegistrar()
        )
    return report_format.create_tables(report)


def _psb_transactions(*rows, with_total=True):
    return _tables("broker_psb", psb_workbook(rows, with_total)).transactions.get_data()


# =============================================================================
# CATEGORY 1: PSB (PSB-*)
# =============================================================================

class TestPsbExpirations:
    """Derivative expiration table of the PSB report."""

    def test_futures_buy(self):
        """
        PSB-001: Futures bought at expiration.

        Expected: count 5, value -1000, points -(200 * 5), commission -(1.5 + 2.5).
        """
        (tx,) = _psb_transactions(psb_expiration_row())
        assert isinstance(tx, DerivativeTransaction)
        assert tx.count == 5
        assert tx.value == Decimal("-1000")
        assert tx.value_in_points == Decimal("-1000")
        assert tx.commission == Decimal("-4.0")
        assert tx.value_currency == tx.commission_currency == "RUB"
        assert tx.portfolio == PSB_PORTFOLIO
        assert tx.trade_id == "1234567"
        assert tx.timestamp == datetime(2021, 3, 15, 18, 45, tzinfo=MOSCOW)

    def test_futures_sell(self):
        """PSB-002: A sell flips count, value and points."""
        (tx,) = _psb_transactions(psb_expiration_row(direction="Продажа"))
        assert tx.count == -5
        assert tx.value == Decimal("1000")
        assert tx.value_in_points == Decimal("1000")
        assert tx.commission == Decimal("-4.0")

    @pytest.mark.parametrize("direction", ["Покупка", "Продажа"])
    def test_option_has_no_value(self, direction):
        """PSB-003: Options settle without money, value cells are ignored."""
        (tx,) = _psb_transactions(psb_expiration_row(direction=direction, contract_type="Опцион", value=999, quote=77))
        assert tx.value == 0
        assert tx.value_in_points == 0
        assert abs(tx.count) == 5

    def test_option_ignores_malformed_value(self):
        (tx,) = _psb_transactions(psb_expiration_row(contract_type="Опцион", value="н/д", quote="н/д"))
        assert tx.value == 0

    def test_unknown_contract_type(self):
        """
        PSB-004: Unknown instrument kind.

        Expected: UnrecognizedCategoryError, no partial records.
        """
        tables = _tables("broker_psb", psb_workbook([
            psb_expiration_row(),
            psb_expiration_row(contract_type="Неизвестный"),
            ]))
        with pytest.raises(UnrecognizedCategoryError) as exc_info:
            tables.transactions.get_data()
        assert exc_info.value.row_index == 7
        assert exc_info.value.table_name == "Исполнение контрактов"

    def test_unknown_direction(self):
        with pytest.raises(UnrecognizedCategoryError):
            _psb_transactions(psb_expiration_row(direction="Мена"))

    def test_absent_kinds_empty(self):
        """PSB-005: Kinds declared absent stay empty next to a non-empty table."""
        tables = _tables("broker_psb", psb_workbook([psb_expiration_row()]))
        assert len(tables.transactions.get_data()) == 1
        assert tables.cash_flows.get_data() == ()
        for kind, table in tables.items():
            if kind is not ReportTableKind.TRANSACTIONS:
                assert table.get_data() == ()

    def test_missing_commissions_are_zero(self):
        (tx,) = _psb_transactions(psb_expiration_row(market_commission=None, broker_commission=None))
        assert tx.commission == 0

    def test_table_without_footer(self):
        """PSB-006: A table without "Итого" runs to the last row."""
        txs = _psb_transactions(psb_expiration_row(), psb_expiration_row(trade_id=2), with_total=False)
        assert [tx.trade_id for tx in txs] == ["1234567", "2"]

    def test_no_expirations(self):
        assert _psb_transactions() == ()

    def test_contract_notations_share_security(self):
        """PSB-007: "Si-3.21" and "SiH1" are the same contract."""
        txs = _psb_transactions(psb_expiration_row(), psb_expiration_row(contract="SiH1", trade_id=2))
        assert txs[0].security == txs[1].security

    @pytest.mark.parametrize("direction", ["Покупка", "Продажа"])
    @pytest.mark.parametrize("count, value, quote", [(1, 10, 3), (7, 70000, 100.5), (100, 1, 0.01)])
    def test_sign_rules(self, direction, count, value, quote):
        """PSB-008: Cash and position always move in opposite directions."""
        (tx,) = _psb_transactions(psb_expiration_row(direction=direction, count=count, value=value, quote=quote))
        assert (tx.count > 0) == (direction == "Покупка")
        assert (tx.count > 0) == (tx.value < 0) == (tx.value_in_points < 0)
        assert tx.commission <= 0

    def test_portfolio_not_found(self):
        workbook = Workbook.from_rows({"Отчет": [["ПАО «Промсвязьбанк»"], ["Исполнение контрактов"], PSB_HEADER]})
        with pytest.raises(StatementParseError, match="Portfolio"):
            get_format("broker_psb").create_report(workbook, InMemorySecurityRegistrar())

    def test_portfolio_override(self):
        report = get_format("broker_psb").create_report(
            psb_workbook([]), InMemorySecurityRegistrar(), portfolio="OVERRIDE"
            )
        assert report.portfolio == "OVERRIDE"
        assert report.format_code == "broker_psb"


# =============================================================================
# CATEGORY 2: SBERBANK (SB-*)
# =============================================================================

class TestSberTransactions:
    """Flat trade export of Sberbank."""

    def test_transactions(self):
        """SB-001: Buys pay cash, sells receive it, commissions are negative."""
        t1, t2, t3 = _tables("broker_sber_transaction", sber_workbook()).transactions.get_data()
        assert all(isinstance(tx, SecurityTransaction) for tx in (t1, t2, t3))

        assert (t1.trade_id, t1.count, t1.value, t1.commission) == ("T1", 10, Decimal("-2505"), Decimal("-3.0"))
        assert t1.value_currency == t1.commission_currency == "RUB"
        assert t1.portfolio == SBER_PORTFOLIO
        assert t1.timestamp == datetime(2021, 2, 1, 10, 0, tzinfo=MOSCOW)

        assert (t2.count, t2.value, t2.commission) == (-5, Decimal("1300"), Decimal("-1.5"))

        assert (t3.count, t3.value, t3.accrued_interest) == (2, Decimal("-2000"), Decimal("-15.5"))
        assert t3.commission == Decimal("-0.3")

    def test_securities_distinct(self):
        """SB-002: One security per instrument, ISIN or ticker."""
        registrar = InMemorySecurityRegistrar()
        tables = _tables("broker_sber_transaction", sber_workbook(), registrar)
        securities = tables.securities.get_data()
        assert all(isinstance(s, Security) for s in securities)
        assert [(s.ticker, s.isin, s.type) for s in securities] == [
            ("SBER", None, SecurityType.STOCK),
            (None, "SU26238RMFS4", SecurityType.BOND),
            ]
        assert {tx.security for tx in tables.transactions.get_data()} == {s.id for s in securities}
        assert len(registrar) == 2

    def test_legacy_currency(self):
        trade = sber_trade_row("T9", "Покупка", "Сбербанк", "SBER", "Акция", 1, 250, currency="RUR")
        (tx,) = _tables("broker_sber_transaction", sber_workbook([trade])).transactions.get_data()
        assert tx.value_currency == "RUB"

    def test_unknown_operation_isolated(self):
        """SB-003: A broken transactions table keeps securities readable."""
        trades = SBER_TRADES + [sber_trade_row("T4", "Мена", "Газпром", "GAZP", "Акция", 1, 100)]
        tables = _tables("broker_sber_transaction", sber_workbook(trades))
        with pytest.raises(UnrecognizedCategoryError):
            tables.transactions.get_data()
        assert len(tables.securities.get_data()) == 3

    def test_portfolio(self):
        report = get_format("broker_sber_transaction").create_report(sber_workbook(), InMemorySecurityRegistrar())
        assert report.portfolio == SBER_PORTFOLIO


# =============================================================================
# CATEGORY 3: URALSIB (UR-*)
# =============================================================================

class TestUralsibCash:
    """Cash position table of the Uralsib report."""

    def test_cash(self):
        """UR-001: One balance per currency, legacy codes normalized."""
        tables = _tables("broker_uralsib", uralsib_workbook())
        assert tables.cash.get_data() == (
            PortfolioCash(portfolio=URALSIB_PORTFOLIO, value=Decimal("12345.67"), currency="RUB"),
            PortfolioCash(portfolio=URALSIB_PORTFOLIO, value=Decimal("100.50"), currency="USD"),
            )

    def test_other_kinds_absent(self):
        tables = _tables("broker_uralsib", uralsib_workbook())
        assert tables.transactions.get_data() == ()
        assert tables.securities.get_data() == ()



# =============================================================================
# CATEGORY 4: DECLARED HEADERS (HD-*)
# =============================================================================

ACCEPTED_OVERLAPS = {
    "broker_psb": {("Исполнение контрактов", "CONTRACT"): ("TYPE",)},
    "broker_sber_transaction": {},
    "broker_uralsib": {},
    }


class TestDeclaredHeaders:
    """Column declarations of each format against its sample header."""

    @pytest.mark.parametrize("format_code, workbook", [
        ("broker_psb", psb_workbook([psb_expiration_row()])),
        ("broker_sber_transaction", sber_workbook()),
        ("broker_uralsib", uralsib_workbook()),
        ])
    def test_only_accepted_overlaps(self, format_code, workbook):
        """
        HD-001: Descriptors matching a header cell claimed by another column.

        Expected: only the overlaps resolved by declaration order on purpose.
        """
        overlaps = {}
        for definitions in get_format(format_code).table_definitions.values():
            for definition in definitions:
                sheet = workbook.get_sheet(definition.sheet_name)
                region = locate_table(sheet, definition)
                assert not region.is_absent, definition.name
                mapping = resolve_header(
                    sheet, region.header_start, region.header_rows, definition.columns, definition.name
                    )
                for column_name, owners in mapping.overlaps.items():
                    overlaps[(definition.name, column_name)] = owners
        assert overlaps == ACCEPTED_OVERLAPS[format_code]

    def test_header_rows_recorded(self):
        """HD-002: Uralsib columns come from the second header row."""
        workbook = uralsib_workbook()
        definition = get_format("broker_uralsib").table_definitions[ReportTableKind.PORTFOLIO_CASH][0]
        sheet = workbook.get_sheet(definition.sheet_name)
        region = locate_table(sheet, definition)
        mapping = resolve_header(sheet, region.header_start, region.header_rows, definition.columns)
        columns = {c.name: c for c in definition.columns}
        assert mapping.header_row(columns["CURRENCY"]) == 5
        assert mapping.header_row(columns["VALUE"]) == 4

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
