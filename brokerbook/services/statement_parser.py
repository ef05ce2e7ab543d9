"""
Statement parsing service.

Entry points:
- parse_statement(): one file (or loaded workbook) → ParsedStatement
- parse_statements(): many files in a thread pool sharing one registrar

Failure policy:
- Statement level (file unreadable, unknown format, no portfolio):
  StatementParseError, nothing is returned for that statement
- Table level (missing column, malformed cell, unknown category):
  recorded in ParsedStatement.failures for that kind only; records of the
  other kinds are kept
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union
from zipfile import BadZipFile

import structlog
from openpyxl.utils.exceptions import InvalidFileException

from brokerbook.config import get_settings
from brokerbook.schemas.statements import ParsedStatement
from brokerbook.schemas.tables import ReportTableKind
from brokerbook.services.errors import StatementParseError, TableParseError
from brokerbook.services.provider_registry import FormatRegistry
from brokerbook.services.report_format import ReportFormat
from brokerbook.services.security_registrar import SecurityRegistrar
from brokerbook.services.workbook import Workbook

logger = structlog.get_logger(__name__)

AUTO_FORMAT = "auto"


def load_workbook_file(path: Union[str, Path]) -> Workbook:
    """
    Load a statement file.

    Raises:
        StatementParseError: File missing or not a readable workbook
    """
    path = Path(path)
    if not path.is_file():
        raise StatementParseError("Statement file not found", details={"path": str(path)})
    try:
        return Workbook.load(path)
    except (BadZipFile, InvalidFileException, OSError, KeyError, ValueError) as e:
        raise StatementParseError(
            "Statement file is not a readable workbook",
            details={"path": str(path), "error": str(e)}
            ) from e


def resolve_format(workbook: Workbook, format_code: str = AUTO_FORMAT) -> ReportFormat:
    """
    Format by code, or auto-detected when format_code is "auto".

    Raises:
        StatementParseError: Unknown code, or no format recognizes the workbook
    """
    if format_code == AUTO_FORMAT:
        report_format = FormatRegistry.auto_detect_format(workbook)
        if report_format is None:
            raise StatementParseError(
                "No statement format recognizes the file",
                details={"path": str(workbook.path) if workbook.path else None}
                )
        return report_format

    report_format = FormatRegistry.get_provider_instance(format_code)
    if report_format is None:
        available = [p["code"] for p in FormatRegistry.list_providers()]
        raise StatementParseError(
            f"Unknown statement format '{format_code}'",
            details={"available": available}
            )
    return report_format


def parse_statement(
    source: Union[str, Path, Workbook],
    registrar: SecurityRegistrar,
    format_code: str = AUTO_FORMAT,
    portfolio: Optional[str] = None
    ) -> ParsedStatement:
    """
    Parse one statement into records per kind.

    Args:
        source: Statement file path or an already loaded Workbook
        registrar: Security registrar (may be shared with other statements)
        format_code: Format code, or "auto" to detect it
        portfolio: Portfolio override; read from the statement when None

    Returns:
        ParsedStatement with every kind's records or failure

    Raises:
        StatementParseError: If the statement cannot be parsed at all
    """
    workbook = source if isinstance(source, Workbook) else load_workbook_file(source)
    report_format = resolve_format(workbook, format_code)
    report = report_format.create_report(workbook, registrar, portfolio)
    tables = report_format.create_tables(report)

    records: Dict[ReportTableKind, Tuple] = {}
    failures: Dict[ReportTableKind, Exception] = {}
    for kind, table in tables.items():
        try:
            records[kind] = table.get_data()
        except TableParseError as e:
            failures[kind] = e

    statement = ParsedStatement(
        format_code=report_format.provider_code,
        portfolio=report.portfolio,
        source=workbook.path,
        records=records,
        failures=failures
        )
    summary = statement.summary()
    logger.info(
        "Statement parsed",
        path=str(workbook.path) if workbook.path else None,
        format=summary["format_code"],
        portfolio=summary["portfolio"],
        counts={k: v for k, v in summary["counts"].items() if v},
        failures=summary["failures"]
        )
    return statement


def parse_statements(
    paths: Sequence[Union[str, Path]],
    registrar: SecurityRegistrar,
    format_code: str = AUTO_FORMAT,
    max_workers: Optional[int] = None,
    raise_on_error: bool = True
    ) -> List[Union[ParsedStatement, StatementParseError]]:
    """
    Parse independent statements in parallel.

    Statements share nothing but the registrar, which is thread-safe.
    Results keep the order of `paths`.

    Args:
        paths: Statement files
        registrar: Registrar shared by the whole batch
        format_code: Format code for all files, or "auto"
        max_workers: Thread pool size (default: settings.PARSER_MAX_WORKERS)
        raise_on_error: Re-raise the first StatementParseError (in path
            order) instead of returning it in place of the result

    Returns:
        One ParsedStatement (or StatementParseError) per path
    """
    if max_workers is None:
        max_workers = get_settings().PARSER_MAX_WORKERS
    max_workers = max(1, min(max_workers, len(paths) or 1))
    # Register formats before workers start reading the registry
    FormatRegistry.auto_discover()

    def _parse_one(path) -> Union[ParsedStatement, StatementParseError]:
        try:
            return parse_statement(path, registrar, format_code)
        except StatementParseError as e:
            logger.warning("Statement skipped", path=str(path), error=e.message, details=e.details)
            return e

    if max_workers == 1:
        results = [_parse_one(p) for p in paths]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(_parse_one, paths))

    logger.info(
        "Statement batch parsed",
        statements=len(results),
        failed=sum(1 for r in results if isinstance(r, StatementParseError))
        )
    if raise_on_error:
        for result in results:
            if isinstance(result, StatementParseError):
                raise result
    return results
