"""
Services package.
Table extraction engine, statement formats and parsing service.

- statement_parser: parse_statement / parse_statements
- provider_registry: FormatRegistry (formats auto-discovered from report_formats/)
- security_registrar: SecurityRegistrar handle and in-memory implementation
"""
from brokerbook.services.errors import (
    IncompleteRowGroupError,
    MalformedCellError,
    MissingColumnError,
    StatementParseError,
    TableNotLocatableError,
    TableParseError,
    UnrecognizedCategoryError,
    )
from brokerbook.services.provider_registry import FormatRegistry
from brokerbook.services.security_registrar import InMemorySecurityRegistrar, SecurityRegistrar
from brokerbook.services.statement_parser import parse_statement, parse_statements

__all__ = [
    "FormatRegistry",
    "InMemorySecurityRegistrar",
    "SecurityRegistrar",
    "parse_statement",
    "parse_statements",
    # Errors
    "IncompleteRowGroupError",
    "MalformedCellError",
    "MissingColumnError",
    "StatementParseError",
    "TableNotLocatableError",
    "TableParseError",
    "UnrecognizedCategoryError",
    ]
