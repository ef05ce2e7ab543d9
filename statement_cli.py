#!/usr/bin/env python3
"""
Statement Parsing CLI

Command-line tool to inspect and parse broker statements without writing code.

Usage:
    python statement_cli.py list-formats
    python statement_cli.py detect <file>
    python statement_cli.py parse <file> [--format CODE] [--portfolio ID] [--json]
"""
import argparse
import json
import sys
from pathlib import Path

# Add project root to path (file is in root)
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from pydantic import BaseModel

from brokerbook.logging_config import configure_logging
from brokerbook.schemas.tables import ReportTableKind
from brokerbook.services.errors import StatementParseError
from brokerbook.services.provider_registry import FormatRegistry
from brokerbook.services.security_registrar import InMemorySecurityRegistrar
from brokerbook.services.statement_parser import load_workbook_file, parse_statement
from brokerbook.utils.currency_utils import currency_display_name


def cmd_list_formats() -> bool:
    """List all registered statement formats."""
    formats = FormatRegistry.list_format_info()
    if not formats:
        print("No formats found")
        return True

    print(f"\n{'Code':<28} {'Name':<32} {'Priority':<8}")
    print("-" * 70)
    for info in formats:
        print(f"{info.code:<28} {info.name:<32} {info.detection_priority:<8}")
    print(f"\nTotal: {len(formats)} format(s)")
    return True


def cmd_detect(file_path: str) -> bool:
    """Show which formats recognize a statement file."""
    try:
        workbook = load_workbook_file(file_path)
    except StatementParseError as e:
        print(f"❌ {e.message}")
        return False

    codes = FormatRegistry.get_compatible_formats(workbook)
    if not codes:
        print(f"❌ No format recognizes '{file_path}'")
        return False
    print(f"✅ '{file_path}' → {codes[0]}")
    if len(codes) > 1:
        print(f"   Also compatible: {', '.join(codes[1:])}")
    return True


def _to_jsonable(record):
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json")
    return str(record)


def cmd_parse(file_path: str, format_code: str, portfolio: str, as_json: bool) -> bool:
    """Parse a statement file and print its records."""
    registrar = InMemorySecurityRegistrar()
    try:
        statement = parse_statement(file_path, registrar, format_code=format_code, portfolio=portfolio)
    except StatementParseError as e:
        print(f"❌ {e.message}")
        for key, value in e.details.items():
            print(f"   {key}: {value}")
        return False

    if as_json:
        output = {
            **statement.summary(),
            "records": {
                kind.value: [_to_jsonable(r) for r in records]
                for kind, records in statement.records.items()
                },
            }
        print(json.dumps(output, ensure_ascii=False, indent=2))
        return statement.is_complete

    print(f"✅ Parsed '{file_path}' as {statement.format_code}, portfolio {statement.portfolio}")
    print(f"\n{'Kind':<28} {'Records':<8}")
    print("-" * 40)
    for kind, records in statement.records.items():
        print(f"{kind.value:<28} {len(records):<8}")
    for cash in statement.get(ReportTableKind.PORTFOLIO_CASH):
        print(f"   {cash.value} {cash.currency} ({currency_display_name(cash.currency)})")
    for kind, error in statement.failures.items():
        print(f"❌ {kind.value}: {error}")
    return statement.is_complete


def main():
    parser = argparse.ArgumentParser(
        description="brokerbook Statement CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python statement_cli.py list-formats
  python statement_cli.py detect report.xlsx
  python statement_cli.py parse report.xlsx --format broker_psb --json
        """
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: settings.LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # list-formats
    subparsers.add_parser("list-formats", help="List available statement formats")

    # detect
    detect_parser = subparsers.add_parser("detect", help="Detect the format of a statement")
    detect_parser.add_argument("file", help="Statement file (.xlsx)")

    # parse
    parse_parser = subparsers.add_parser("parse", help="Parse a statement")
    parse_parser.add_argument("file", help="Statement file (.xlsx)")
    parse_parser.add_argument("--format", dest="format_code", default="auto", help="Format code (default: auto)")
    parse_parser.add_argument("--portfolio", default=None, help="Portfolio id (default: read from statement)")
    parse_parser.add_argument("--json", dest="as_json", action="store_true", help="Print records as JSON")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    configure_logging(log_level=args.log_level or ("ERROR" if getattr(args, "as_json", False) else None))

    if args.command == "list-formats":
        ok = cmd_list_formats()
    elif args.command == "detect":
        ok = cmd_detect(args.file)
    else:
        ok = cmd_parse(args.file, args.format_code, args.portfolio, args.as_json)

    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
