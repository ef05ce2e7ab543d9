"""
Report tables: producers of one record stream of a statement.

Lifetime of a DefinedReportTable (forward only, one run per instance):

    UNLOCATED ──> LOCATED ──> HEADER_RESOLVED ──> EXTRACTING ──> DONE
        │            │                                │
        └─> ABSENT   └──────────> ABORTED <───────────┘

- ABSENT: start marker (or declared sheet) not found, data is ()
- ABORTED: a hard TableParseError; get_data() re-raises it on every call

Records are buffered: get_data() returns the complete tuple or raises.
EmptyReportTable is the producer of kinds a format never reports.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

import structlog

from brokerbook.schemas.tables import TableDefinition
from brokerbook.services.broker_report import BrokerReport
from brokerbook.services.errors import IncompleteRowGroupError, MalformedCellError, TableParseError
from brokerbook.services.header_matcher import resolve_header
from brokerbook.services.table_locator import TableRegion, find_table_end, locate_table
from brokerbook.services.table_row import TableRow

logger = structlog.get_logger(__name__)


class TableState(str, Enum):
    UNLOCATED = "unlocated"
    LOCATED = "located"
    HEADER_RESOLVED = "header_resolved"
    EXTRACTING = "extracting"
    DONE = "done"
    ABSENT = "absent"
    ABORTED = "aborted"


class ReportTable(ABC):
    """Producer of one record stream."""

    @abstractmethod
    def get_data(self) -> Tuple[Any, ...]:
        """
        All records of the table, in row order.

        Raises:
            TableParseError: Extraction aborted (never for an absent table)
        """
        pass

    @property
    @abstractmethod
    def state(self) -> TableState:
        pass


class EmptyReportTable(ReportTable):
    """Table a format never has: always empty, never touches the workbook."""

    def get_data(self) -> Tuple[Any, ...]:
        return ()

    @property
    def state(self) -> TableState:
        return TableState.ABSENT

    def __repr__(self) -> str:
        return "EmptyReportTable()"


class DefinedReportTable(ReportTable):
    """Table extracted from a statement according to a TableDefinition."""

    def __init__(self, report: BrokerReport, definition: TableDefinition):
        self.report = report
        self.definition = definition
        self.region: Optional[TableRegion] = None
        self._state = TableState.UNLOCATED
        self._data: Tuple[Any, ...] = ()
        self._error: Optional[TableParseError] = None

    @property
    def state(self) -> TableState:
        return self._state

    def get_data(self) -> Tuple[Any, ...]:
        if self._state is TableState.UNLOCATED:
            try:
                self._data = self._extract()
            except TableParseError as e:
                self._state = TableState.ABORTED
                self._error = e
                logger.warning("Table aborted", error=e.message, error_type=type(e).__name__, **e.context())
        if self._state is TableState.ABORTED:
            raise self._error
        return self._data

    def _extract(self) -> Tuple[Any, ...]:
        definition = self.definition
        region = locate_table(self.report.sheet_for(definition), definition)
        if region.is_absent:
            self._state = TableState.ABSENT
            return ()
        self._state = TableState.LOCATED

        mapping = resolve_header(
            region.sheet, region.header_start, region.header_rows, definition.columns, definition.name
            )
        self._state = TableState.HEADER_RESOLVED

        region = find_table_end(region, definition, mapping.required_indices())
        self.region = region
        self._state = TableState.EXTRACTING

        records: List[Any] = []
        step = definition.rows_per_record
        for row_index in range(region.data_start, region.data_end, step):
            if row_index + step > region.data_end:
                raise IncompleteRowGroupError(
                    "Table ends inside a multi-row record",
                    table_name=definition.name,
                    row_index=row_index,
                    details={"rows_per_record": step, "rows_left": region.data_end - row_index}
                    )
            row = TableRow(region.sheet, mapping, row_index, self.report, step)
            records.extend(self._map_row(row))

        if definition.distinct:
            records = _distinct(records)
        self._state = TableState.DONE
        logger.info(
            "Table extracted",
            table_name=definition.name,
            sheet=region.sheet.name,
            rows=region.data_span,
            records=len(records)
            )
        return tuple(records)

    def _map_row(self, row: TableRow) -> Sequence[Any]:
        try:
            result = self.definition.row_mapper(row, self.report)
        except TableParseError as e:
            if e.table_name is None:
                e.table_name = self.definition.name
            if e.row_index is None:
                e.row_index = row.row_index
            raise
        except Exception as e:
            # Record validation (pydantic) and any other mapper failure
            raise MalformedCellError(
                "Row cannot be mapped to a record",
                table_name=self.definition.name,
                row_index=row.row_index,
                details={"reason": str(e), "cause": type(e).__name__}
                ) from e
        if result is None:
            return ()
        if isinstance(result, (list, tuple)):
            return result
        return (result,)

    def __repr__(self) -> str:
        return f"DefinedReportTable(table={self.definition.name!r}, state={self._state.value})"


class CompositeReportTable(ReportTable):
    """Concatenation of several tables producing the same record kind."""

    def __init__(self, tables: Sequence[ReportTable], distinct: bool = False):
        self.tables = tuple(tables)
        self.distinct = distinct

    def get_data(self) -> Tuple[Any, ...]:
        records: List[Any] = []
        for table in self.tables:
            records.extend(table.get_data())
        if self.distinct:
            records = _distinct(records)
        return tuple(records)

    @property
    def state(self) -> TableState:
        states = [t.state for t in self.tables]
        if TableState.ABORTED in states:
            return TableState.ABORTED
        if states and all(s is TableState.ABSENT for s in states):
            return TableState.ABSENT
        if all(s in (TableState.DONE, TableState.ABSENT) for s in states):
            return TableState.DONE
        return TableState.UNLOCATED

    def __repr__(self) -> str:
        return f"CompositeReportTable(tables={list(self.tables)})"


def _distinct(records: Sequence[Any]) -> List[Any]:
    """Drop duplicates, keeping the first occurrence."""
    seen = set()
    result = []
    for record in records:
        if record not in seen:
            seen.add(record)
            result.append(record)
    return result
