"""
Pydantic schemas for brokerbook.

**Organization by Domain**:
- tables.py: Table declarations (TableColumn, ColumnSpec, TableDefinition, kinds)
- records.py: Domain records produced from statements
- statements.py: Parsing service DTOs (FormatInfo, ParsedStatement)

**Design Notes**:
- All models use Pydantic v2
- Declarations and records are frozen (immutable after construction)
"""
from brokerbook.schemas.records import (
    AbstractTransaction,
    CashFlowType,
    DerivativeTransaction,
    EventCashFlow,
    ForeignExchangeRate,
    PortfolioCash,
    PortfolioProperty,
    PortfolioPropertyType,
    Security,
    SecurityEventCashFlow,
    SecurityQuote,
    SecurityTransaction,
    SecurityType,
    )
from brokerbook.schemas.statements import FormatInfo, ParsedStatement
from brokerbook.schemas.tables import (
    CellType,
    ColumnSpec,
    MarkerMatch,
    ReportTableKind,
    TableColumn,
    TableDefinition,
    column,
    )

__all__ = [
    # Records
    "AbstractTransaction",
    "CashFlowType",
    "DerivativeTransaction",
    "EventCashFlow",
    "ForeignExchangeRate",
    "PortfolioCash",
    "PortfolioProperty",
    "PortfolioPropertyType",
    "Security",
    "SecurityEventCashFlow",
    "SecurityQuote",
    "SecurityTransaction",
    "SecurityType",
    # Statements
    "FormatInfo",
    "ParsedStatement",
    # Tables
    "CellType",
    "ColumnSpec",
    "MarkerMatch",
    "ReportTableKind",
    "TableColumn",
    "TableDefinition",
    "column",
    ]
