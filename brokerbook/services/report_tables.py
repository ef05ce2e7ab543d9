"""
Per-statement set of report tables, one producer per ReportTableKind.

A format declares, per kind, the tuple of TableDefinitions producing it.
An empty tuple (or a kind left out) means the format never reports that kind
and the producer is an EmptyReportTable. Several definitions for one kind
are concatenated in declaration order.
"""
from __future__ import annotations

from typing import Dict, Mapping, Sequence

from brokerbook.schemas.tables import ReportTableKind, TableDefinition
from brokerbook.services.broker_report import BrokerReport
from brokerbook.services.report_table import (
    CompositeReportTable,
    DefinedReportTable,
    EmptyReportTable,
    ReportTable,
    )


def empty_table() -> ReportTable:
    """Producer of a kind the format never reports."""
    return EmptyReportTable()


class ReportTables:
    """Record producers of one statement, by kind."""

    def __init__(self, report: BrokerReport, tables: Mapping[ReportTableKind, ReportTable]):
        self.report = report
        self._tables: Dict[ReportTableKind, ReportTable] = {
            kind: tables.get(kind) or empty_table() for kind in ReportTableKind
            }

    @classmethod
    def from_definitions(
        cls,
        report: BrokerReport,
        definitions: Mapping[ReportTableKind, Sequence[TableDefinition]]
        ) -> ReportTables:
        tables: Dict[ReportTableKind, ReportTable] = {}
        for kind, kind_definitions in definitions.items():
            if not kind_definitions:
                tables[kind] = empty_table()
            elif len(kind_definitions) == 1:
                tables[kind] = DefinedReportTable(report, kind_definitions[0])
            else:
                tables[kind] = CompositeReportTable(
                    [DefinedReportTable(report, d) for d in kind_definitions],
                    distinct=any(d.distinct for d in kind_definitions)
                    )
        return cls(report, tables)

    def get_table(self, kind: ReportTableKind) -> ReportTable:
        return self._tables[kind]

    def items(self):
        return self._tables.items()

    @property
    def portfolio_properties(self) -> ReportTable:
        return self._tables[ReportTableKind.PORTFOLIO_PROPERTY]

    @property
    def cash(self) -> ReportTable:
        return self._tables[ReportTableKind.PORTFOLIO_CASH]

    @property
    def cash_flows(self) -> ReportTable:
        return self._tables[ReportTableKind.CASH_FLOW]

    @property
    def securities(self) -> ReportTable:
        return self._tables[ReportTableKind.SECURITIES]

    @property
    def transactions(self) -> ReportTable:
        return self._tables[ReportTableKind.TRANSACTIONS]

    @property
    def security_event_cash_flows(self) -> ReportTable:
        return self._tables[ReportTableKind.SECURITY_EVENT_CASH_FLOW]

    @property
    def security_quotes(self) -> ReportTable:
        return self._tables[ReportTableKind.SECURITY_QUOTES]

    @property
    def fx_rates(self) -> ReportTable:
        return self._tables[ReportTableKind.FX_RATES]
