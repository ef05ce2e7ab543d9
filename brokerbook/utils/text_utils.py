"""
Text normalization for header and marker matching.

Spreadsheet cells carry line breaks, NBSPs and inconsistent case; all header
phrase and marker comparisons go through normalize_text() first.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Sequence


def cell_to_text(value: Any) -> str:
    """
    Render a raw cell value as text.

    Integral floats lose the ".0" so that numeric ids read as "123", not "123.0".
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def normalize_text(value: Any) -> str:
    """Lowercase and collapse every kind of whitespace to a single space."""
    return " ".join(cell_to_text(value).lower().split())


def contains_words_in_order(text: str, words: Sequence[str]) -> bool:
    """
    Check that all words occur in text, in the given order.

    Both text and words are expected to be normalized already.

    Examples:
        >>> contains_words_in_order("цена, пункты", ("цена", "пункты"))
        True
        >>> contains_words_in_order("пункты / цена", ("цена", "пункты"))
        False
    """
    if not words:
        return False
    position = 0
    for word in words:
        found = text.find(word, position)
        if found < 0:
            return False
        position = found + len(word)
    return True
