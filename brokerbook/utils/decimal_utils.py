"""
Locale-aware numeric coercion for statement cells.

Brokers write numbers in their own locale: "1 234,56" (ru_RU), "1.234,56" (de_DE),
"1,234.56" (en_US). Spreadsheet cells may also hold real numbers (int/float) when
the exporter kept the numeric type. This module turns both into Decimal.

Usage:
    from brokerbook.utils.decimal_utils import parse_decimal_value

    parse_decimal_value("1 234,56", locale="ru_RU")    # Decimal("1234.56")
    parse_decimal_value("-12,5 RUB", locale="ru_RU",
                        strip_currency=True)           # Decimal("-12.5")
    parse_decimal_value(1234.5)                        # Decimal("1234.5")
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from babel.numbers import NumberFormatError, parse_decimal

from brokerbook.utils.currency_utils import SYMBOL_TO_ISO

# Every whitespace a spreadsheet exporter may use as thousands separator
# (space, NBSP, narrow NBSP, thin space)
_WHITESPACE_RE = re.compile(r"[\s\u00a0\u202f\u2009]+")

# ISO-like currency codes embedded in cell text ("100,00 RUB", "USD 12.5")
_CURRENCY_CODE_RE = re.compile(r"(?<![A-Za-zА-Яа-я])([A-Z]{3}|руб\.?|рубл[а-я]*)(?![A-Za-zА-Яа-я])", re.IGNORECASE)

# Cell texts meaning "no value"
EMPTY_MARKERS = {"", "-", "—", "–"}


class DecimalParseError(ValueError):
    """Raised when a cell cannot be coerced to Decimal."""
    pass


def strip_currency_tokens(text: str) -> str:
    """
    Remove currency symbols and ISO codes from a cell text.

    Examples:
        >>> strip_currency_tokens("$1,000.00")
        '1,000.00'
        >>> strip_currency_tokens("1 000,00 RUB")
        '1 000,00 '
    """
    result = _CURRENCY_CODE_RE.sub("", text)
    # Longest symbols first so "R$" is removed before "R"
    for symbol in sorted(SYMBOL_TO_ISO, key=len, reverse=True):
        if not symbol.isalpha():
            result = result.replace(symbol, "")
    return result


def parse_decimal_value(value: Any, locale: str = "ru_RU", strip_currency: bool = False) -> Optional[Decimal]:
    """
    Coerce a raw cell value to Decimal.

    Args:
        value: Raw cell value (None, int, float, Decimal or str)
        locale: Babel locale used for decimal/group separators of text cells
        strip_currency: Remove currency symbols/codes before parsing

    Returns:
        Decimal, or None for an empty cell

    Raises:
        DecimalParseError: If the text is not a number in the given locale
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise DecimalParseError(f"Boolean is not a number: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # str() keeps the shortest repr: 0.1 -> Decimal("0.1"), not the binary expansion
        return Decimal(str(value))

    text = str(value)
    if strip_currency:
        text = strip_currency_tokens(text)
    text = _WHITESPACE_RE.sub("", text)
    if text in EMPTY_MARKERS:
        return None

    try:
        number = parse_decimal(text, locale=locale, strict=False)
    except (NumberFormatError, InvalidOperation, ValueError) as e:
        raise DecimalParseError(f"Cannot parse '{value}' as number in locale {locale}: {e}") from e
    if not number.is_finite():
        raise DecimalParseError(f"Not a finite number: '{value}'")
    return number


def parse_integer_value(value: Any, locale: str = "ru_RU") -> Optional[int]:
    """
    Coerce a raw cell value to int.

    Accepts integral floats (5.0) and integral decimal texts ("5,00").

    Raises:
        DecimalParseError: If the value is not a number or has a fractional part
    """
    number = parse_decimal_value(value, locale=locale)
    if number is None:
        return None
    if number != number.to_integral_value():
        raise DecimalParseError(f"Not an integer: '{value}'")
    return int(number)
