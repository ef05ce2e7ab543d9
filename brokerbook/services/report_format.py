"""
Statement format - Provider base class.

This module provides:
- ReportFormat: Abstract base class for broker statement format plugins

**Architecture:**
- Plugins are auto-discovered from `report_formats/` folder
  (see FormatRegistry in provider_registry.py)
- A format is declarative: per record kind, the tuple of TableDefinitions
  producing it; an empty tuple declares the kind absent for this broker
- Business rules (signs, commissions, currencies) live in the row mappers
  referenced by the definitions, never in the engine

**Flow:**
    Workbook → can_parse() → find_portfolio() → create_report()
             → create_tables() → ReportTables → records per kind
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import structlog

from brokerbook.config import get_settings
from brokerbook.schemas.statements import FormatInfo
from brokerbook.schemas.tables import MarkerMatch, ReportTableKind, TableDefinition
from brokerbook.services.broker_report import BrokerReport
from brokerbook.services.errors import StatementParseError
from brokerbook.services.report_tables import ReportTables
from brokerbook.services.security_registrar import SecurityRegistrar
from brokerbook.services.workbook import Sheet, Workbook
from brokerbook.utils.datetime_utils import DEFAULT_TIMESTAMP_FORMATS
from brokerbook.utils.text_utils import cell_to_text

logger = structlog.get_logger(__name__)

# Rows scanned for a statement title block
TITLE_BLOCK_ROWS = 20


class ReportFormat(ABC):
    """
    Abstract base class for broker statement format plugins.

    Each plugin declares where a specific broker prints its tables, how
    their headers read and how rows become records.

    **Plugin Responsibilities:**
    - Recognize the broker's workbook (can_parse)
    - Find the portfolio (account) id printed in the statement
    - Declare table definitions per record kind, absent kinds as ()
    - Map rows to records, applying the broker's sign conventions

    **Core Responsibilities (not in plugin):**
    - Locating tables, matching headers, coercing cells
    - Table lifetime, error isolation between tables
    - Thread pool and security registrar sharing across statements

    Example:
        @register_provider(FormatRegistry)
        class PsbReportFormat(ReportFormat):
            @property
            def provider_code(self) -> str:
                return "broker_psb"
            # ... implement other methods
    """

    @property
    @abstractmethod
    def provider_code(self) -> str:
        """
        Unique format identifier.

        Must be lowercase alphanumeric with underscores.

        Examples: 'broker_psb', 'broker_uralsib'
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Human-readable format name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Which statements (broker, export kind, periods) the format reads."""
        pass

    @property
    def supported_extensions(self) -> List[str]:
        """
        List of supported file extensions (lowercase, with dot).

        Default: ['.xlsx']
        """
        return ['.xlsx']

    @property
    def detection_priority(self) -> int:
        """
        Priority for auto-detection (higher = checked first).

        Suggested ranges:
        - 100+: Formats recognized by a unique title or marker
        - 0-99: Formats recognized by generic headers only

        Default: 100
        """
        return 100

    @property
    def number_locale(self) -> str:
        """Babel locale of numeric text cells."""
        return get_settings().DEFAULT_NUMBER_LOCALE

    @property
    def timezone_name(self) -> str:
        """IANA zone of the statement's local timestamps."""
        return get_settings().STATEMENT_TIMEZONE

    @property
    def timestamp_formats(self) -> Sequence[str]:
        """Closed set of strptime patterns accepted for timestamp cells."""
        return DEFAULT_TIMESTAMP_FORMATS

    @property
    @abstractmethod
    def table_definitions(self) -> Mapping[ReportTableKind, Tuple[TableDefinition, ...]]:
        """
        Table definitions per record kind.

        Kinds mapped to () or left out are never reported by the format.
        """
        pass

    @abstractmethod
    def can_parse(self, workbook: Workbook) -> bool:
        """
        Check if this format can parse the given workbook.

        Should be a quick check (title text, marker cell) without
        extracting any table.
        """
        pass

    @abstractmethod
    def find_portfolio(self, workbook: Workbook) -> Optional[str]:
        """Portfolio (account) id printed in the statement, None if not found."""
        pass

    @staticmethod
    def _title_block_contains(sheet: Sheet, title: str, label: str, max_rows: int = TITLE_BLOCK_ROWS) -> bool:
        """
        Check that the title is printed above the label of a title block.

        Matches statements opening with the broker name followed by a label
        cell ("Договор ..."), and not a title word found in table data.
        """
        label_row = sheet.find_row(label, end=max_rows, match=MarkerMatch.PREFIX)
        return label_row is not None and sheet.contains_text(title, max_rows=label_row)

    @staticmethod
    def _portfolio_text(value) -> Optional[str]:
        """Portfolio id from a raw cell ("12345/67" or 1234567.0)."""
        text = cell_to_text(value)
        return text or None

    def create_report(
        self,
        workbook: Workbook,
        registrar: SecurityRegistrar,
        portfolio: Optional[str] = None
        ) -> BrokerReport:
        """
        Build the per-statement context.

        Args:
            workbook: Loaded statement
            registrar: Security registrar shared by the batch
            portfolio: Portfolio id override; found in the statement when None

        Raises:
            StatementParseError: Portfolio neither given nor found
        """
        portfolio = portfolio or self.find_portfolio(workbook)
        if not portfolio:
            raise StatementParseError(
                "Portfolio not found in statement",
                details={"format": self.provider_code, "path": str(workbook.path) if workbook.path else None}
                )
        return BrokerReport(
            workbook,
            portfolio,
            registrar,
            number_locale=self.number_locale,
            timestamp_formats=self.timestamp_formats,
            timezone_name=self.timezone_name,
            format_code=self.provider_code
            )

    def create_tables(self, report: BrokerReport) -> ReportTables:
        """Fresh table producers for one statement."""
        return ReportTables.from_definitions(report, self.table_definitions)

    def declared_kinds(self) -> Dict[ReportTableKind, int]:
        """Number of table definitions per kind (0 = declared absent)."""
        definitions = self.table_definitions
        return {kind: len(definitions.get(kind, ())) for kind in ReportTableKind}

    def to_format_info(self) -> FormatInfo:
        """Convert provider to FormatInfo DTO."""
        return FormatInfo(
            code=self.provider_code,
            name=self.provider_name,
            description=self.description,
            supported_extensions=self.supported_extensions,
            detection_priority=self.detection_priority
            )
