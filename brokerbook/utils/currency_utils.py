"""
Currency utilities.

Normalizes the currency notations found in broker statements to ISO 4217 codes.
Validation uses pycountry; localized names come from Babel.
"""
from typing import Optional

import pycountry
import structlog
from babel.numbers import get_currency_name

logger = structlog.get_logger(__name__)

# Map of common currency symbols to possible ISO codes
SYMBOL_TO_ISO = {
    "$": ["USD", "CAD", "AUD", "NZD", "HKD", "SGD", "MXN", "ARS", "CLP", "COP"],
    "€": ["EUR"],
    "£": ["GBP"],
    "¥": ["JPY", "CNY"],
    "₹": ["INR"],
    "₽": ["RUB"],
    "₩": ["KRW"],
    "₺": ["TRY"],
    "₴": ["UAH"],
    "₪": ["ILS"],
    "₸": ["KZT"],
    "฿": ["THB"],
    "Fr": ["CHF"],
    "zł": ["PLN"],
    "Ft": ["HUF"],
    "Kč": ["CZK"],
    "лв": ["BGN"],
    "R$": ["BRL"],
    }

# Legacy or local notations used by Russian brokers
CURRENCY_ALIASES = {
    "RUR": "RUB",  # pre-1998 ruble code, still printed by many brokers
    "РУБ": "RUB",
    "РУБ.": "RUB",
    "РУБЛЬ": "RUB",
    "SUR": "RUB",
    "ДОЛЛ. США": "USD",
    "ЕВРО": "EUR",
    }


def is_iso_currency(code: str) -> bool:
    """Check that code is a known ISO 4217 alphabetic code."""
    if not code or len(code) != 3:
        return False
    return pycountry.currencies.get(alpha_3=code.upper()) is not None


def normalize_currency_code(value: Optional[str]) -> str:
    """
    Normalize a statement currency notation to an ISO 4217 code.

    Accepts:
    - ISO code in any case ("usd", "USD")
    - Legacy/local notation ("RUR", "руб.")
    - Unambiguous currency symbol ("€", "₽")

    Args:
        value: Currency notation from a statement cell

    Returns:
        Uppercase ISO 4217 code

    Raises:
        ValueError: If the notation is empty, ambiguous or unknown

    Examples:
        >>> normalize_currency_code("RUR")
        'RUB'
        >>> normalize_currency_code(" eur ")
        'EUR'
    """
    if value is None or not str(value).strip():
        raise ValueError("Currency code cannot be empty")

    raw = str(value).strip()
    code = raw.upper()

    if code in CURRENCY_ALIASES:
        return CURRENCY_ALIASES[code]

    if is_iso_currency(code):
        return code

    candidates = SYMBOL_TO_ISO.get(raw)
    if candidates:
        if len(candidates) == 1:
            return candidates[0]
        raise ValueError(f"Symbol '{raw}' matches multiple currencies: {candidates}")

    raise ValueError(f"Invalid currency code: '{raw}'. Must be ISO 4217 currency.")


def currency_display_name(code: str, language: str = "ru") -> str:
    """
    Localized currency name for logs and CLI output.

    Falls back to the code itself when Babel has no name for it.
    """
    try:
        return get_currency_name(code, locale=language)
    except Exception as e:
        logger.debug("Currency name lookup failed", code=code, error=str(e))
        return code
