"""
Security code helpers.

Moscow Exchange derivatives are printed in two notations:
- short code: "SiM1" (base + month letter + last digit of year)
- long code:  "Si-6.21" (base - month . two-digit year)

Statements of different brokers (and different periods of the same broker)
mix both notations, so derivative codes are canonicalized to the short form
before being declared to the security registrar.
"""
import re

# Futures month letters, January..December
FUTURES_MONTH_CODES = "FGHJKMNQUVXZ"

_LONG_FUTURES_CODE_RE = re.compile(r"^(?P<base>[A-Za-z0-9]+)-(?P<month>\d{1,2})\.(?P<year>\d{2})$")


def normalize_code(code: str) -> str:
    """Trim and collapse internal whitespace of an instrument code."""
    return "".join(str(code).split())


def to_short_futures_code(code: str) -> str:
    """
    Convert a long futures code to the short MOEX notation.

    Codes that are not in the long notation are returned normalized but
    otherwise unchanged (option codes, already short codes).

    Examples:
        >>> to_short_futures_code("Si-6.21")
        'SiM1'
        >>> to_short_futures_code("RTS-12.20")
        'RTSZ0'
        >>> to_short_futures_code("SiM1")
        'SiM1'
    """
    code = normalize_code(code)
    match = _LONG_FUTURES_CODE_RE.match(code)
    if not match:
        return code
    month = int(match.group("month"))
    if not 1 <= month <= 12:
        return code
    return f"{match.group('base')}{FUTURES_MONTH_CODES[month - 1]}{match.group('year')[-1]}"


def canonical_derivative_code(code: str) -> str:
    """Canonical key of a derivative contract for the security registrar."""
    return to_short_futures_code(code)


def canonical_security_code(code: str) -> str:
    """Canonical key of a stock/bond identifier (ticker or ISIN)."""
    return normalize_code(code).upper()
