"""
Exceptions of the table extraction engine.

Hierarchy:
    TableParseError                  base, carries diagnostic context
    ├── TableNotLocatableError       benign: start marker not found (table absent)
    ├── MissingColumnError           required column not found in header
    ├── MalformedCellError           cell cannot be coerced to the declared type
    │   └── IncompleteRowGroupError  trailing partial group of a multi-row record
    └── UnrecognizedCategoryError    discriminant cell outside the known set
    StatementParseError              statement level (file, format, portfolio)

TableNotLocatableError never escapes extraction: the table turns it into an
empty result. All other TableParseErrors abort the containing table only.
"""
from typing import Any, Dict, Optional


class TableParseError(Exception):
    """Base exception for table extraction errors."""

    def __init__(
        self,
        message: str,
        table_name: Optional[str] = None,
        row_index: Optional[int] = None,
        column: Optional[str] = None,
        raw_text: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
        ):
        super().__init__(message)
        self.message = message
        self.table_name = table_name
        self.row_index = row_index
        self.column = column
        self.raw_text = raw_text
        self.details = details or {}

    def context(self) -> Dict[str, Any]:
        """Diagnostic context for logs and error reports."""
        return {
            "table_name": self.table_name,
            "row_index": self.row_index,
            "column": self.column,
            "raw_text": self.raw_text,
            **self.details,
            }

    def __str__(self) -> str:
        parts = [self.message]
        if self.table_name:
            parts.append(f"table='{self.table_name}'")
        if self.row_index is not None:
            parts.append(f"row={self.row_index}")
        if self.column:
            parts.append(f"column='{self.column}'")
        if self.raw_text is not None:
            parts.append(f"text='{self.raw_text}'")
        return ", ".join(parts)


class TableNotLocatableError(TableParseError):
    """Start marker of a table not found. Benign: the table is absent."""
    pass


class MissingColumnError(TableParseError):
    """A required column never matched in the header region."""
    pass


class MalformedCellError(TableParseError):
    """A cell's content cannot be coerced to the column's declared type."""
    pass


class IncompleteRowGroupError(MalformedCellError):
    """A multi-row record table ends with a partial row group."""
    pass


class UnrecognizedCategoryError(TableParseError):
    """A discriminant cell (direction, instrument kind) holds an unknown value."""
    pass


class StatementParseError(Exception):
    """Raised when a statement cannot be parsed at all (file, format, portfolio)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
