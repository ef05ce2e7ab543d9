"""
Date and time utilities for brokerbook.

Provides timezone-aware datetime helpers and statement timestamp parsing.
Statements print local exchange time without zone; every parsed timestamp is
turned into an aware datetime using the zone declared by the statement format.
"""
from datetime import date, datetime, time
from typing import Any, Iterable, Optional
from zoneinfo import ZoneInfo

# Patterns most Russian broker statements use
DEFAULT_TIMESTAMP_FORMATS = (
    "%d.%m.%Y %H:%M:%S",
    "%d.%m.%Y %H:%M",
    "%d.%m.%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    )


class TimestampParseError(ValueError):
    """Raised when a value matches none of the declared timestamp patterns."""
    pass


def get_zone(name: str) -> ZoneInfo:
    """Resolve an IANA zone name ("Europe/Moscow")."""
    return ZoneInfo(name)


def to_instant(value: datetime, zone: ZoneInfo) -> datetime:
    """
    Attach the statement zone to a naive datetime.

    Aware datetimes are returned unchanged.
    """
    if value.tzinfo is not None:
        return value
    return value.replace(tzinfo=zone)


def parse_timestamp(value: Any, formats: Iterable[str], zone: ZoneInfo) -> Optional[datetime]:
    """
    Parse a statement timestamp cell into an aware datetime.

    Accepts datetime/date cells (spreadsheet typed values) and text matching
    one of the given strptime patterns. Date-only values map to midnight.

    Args:
        value: Raw cell value
        formats: Closed set of accepted strptime patterns, tried in order
        zone: Zone of the statement's local time

    Returns:
        Aware datetime, or None for an empty cell

    Raises:
        TimestampParseError: If text matches no pattern. There is no fallback.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_instant(value, zone)
    if isinstance(value, date):
        return to_instant(datetime.combine(value, time.min), zone)

    text = " ".join(str(value).split())
    if not text:
        return None

    formats = tuple(formats)
    for fmt in formats:
        try:
            return to_instant(datetime.strptime(text, fmt), zone)
        except ValueError:
            continue

    raise TimestampParseError(f"Timestamp '{text}' matches none of the patterns {list(formats)}")
