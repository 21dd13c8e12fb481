"""Shared utilities used across the sales assistant."""

import re
from typing import Optional

from sales_assistant.config import settings

_MONEY_RE = re.compile(
    r"(\d+(?:[.,]\d{3})*(?:\.\d+)?)\s*(k|thousand|grand)?\b",
    re.IGNORECASE,
)
_THOUSANDS_RE = re.compile(r"\d{1,3}(?:[.,]\d{3})+")
_WORD_RE = re.compile(r"[A-Za-z0-9]+")


def parse_money(text: str) -> Optional[int]:
    """Parse the first money amount in free text.

    Thousands separators and "k"/"thousand"/"grand" suffixes are understood.

    Examples:
        >>> parse_money("around 20k")
        20000
        >>> parse_money("$45,000 max")
        45000
        >>> parse_money("1.5k")
        1500
        >>> parse_money("no idea") is None
        True
    """
    match = _MONEY_RE.search(text)
    if not match:
        return None
    number = match.group(1)
    if _THOUSANDS_RE.fullmatch(number):
        number = re.sub(r"[.,]", "", number)
    else:
        number = number.replace(",", ".")
    value = float(number)
    if match.group(2):
        value *= 1000
    return int(value)


def format_price(value: float, symbol: Optional[str] = None) -> str:
    """Format a price with the dealership currency symbol.

    Examples:
        >>> format_price(45990, symbol="$")
        '$45,990'
    """
    if symbol is None:
        symbol = settings.business.currency_symbol
    return f"{symbol}{value:,.0f}"


def capitalize_words(text: str) -> str:
    """Capitalize each alphanumeric run, keeping separators.

    Examples:
        >>> capitalize_words("grand livina")
        'Grand Livina'
        >>> capitalize_words("hr-v")
        'Hr-V'
    """
    return _WORD_RE.sub(lambda m: m.group(0).capitalize(), text)
