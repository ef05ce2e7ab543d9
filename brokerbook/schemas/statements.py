"""
Statement parsing schemas.

DTOs returned by the statement parsing service and the format registry.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from brokerbook.schemas.tables import ReportTableKind


class FormatInfo(BaseModel):
    """
    Information about an available statement format.

    Attributes:
        code: Unique format identifier (e.g., 'broker_psb')
        name: Human-readable name (e.g., 'PSB broker report')
        description: Format description
        supported_extensions: List of supported file extensions
        detection_priority: Order used by auto-detection (higher first)
    """
    code: str = Field(..., description="Unique format identifier")
    name: str = Field(..., description="Human-readable format name")
    description: str = Field(..., description="Format description")
    supported_extensions: List[str] = Field(default_factory=list, description="Supported file extensions")
    detection_priority: int = Field(default=100, description="Auto-detection priority")


class ParsedStatement(BaseModel):
    """
    Result of parsing one statement.

    Contains, per record kind, either the complete tuple of records (possibly
    empty) or the error that aborted that kind's table. A failure of one kind
    never removes records of other kinds.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    format_code: str = Field(..., description="Format used for parsing")
    portfolio: str = Field(..., description="Portfolio (account) the statement belongs to")
    source: Optional[Path] = Field(default=None, description="Statement file path, if parsed from a file")
    records: Dict[ReportTableKind, Tuple[Any, ...]] = Field(default_factory=dict)
    failures: Dict[ReportTableKind, Exception] = Field(default_factory=dict)

    def get(self, kind: ReportTableKind) -> Tuple[Any, ...]:
        """Records of a kind; empty when the kind is absent or failed."""
        return self.records.get(kind, ())

    @property
    def is_complete(self) -> bool:
        """True if no table failed."""
        return not self.failures

    def raise_for_failures(self) -> None:
        """Re-raise the first table failure, if any."""
        for error in self.failures.values():
            raise error

    def summary(self) -> Dict[str, Any]:
        """Record count per kind and failure messages, for logs and CLI."""
        return {
            "format_code": self.format_code,
            "portfolio": self.portfolio,
            "counts": {kind.value: len(records) for kind, records in self.records.items()},
            "failures": {kind.value: str(error) for kind, error in self.failures.items()},
            }
