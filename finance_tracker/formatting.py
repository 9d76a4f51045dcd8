"""Formatting utilities for currency display in generated messages."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Union

from . import config

Number = Union[Decimal, float, int]


def format_currency(amount: Number, include_sign: bool = True, symbol: Optional[str] = None) -> str:
    """Format a currency amount with thousands separators and two decimals.

    Args:
        amount: The amount to format
        include_sign: Whether to prefix the currency symbol
        symbol: Currency symbol; defaults to ``config.CURRENCY_SYMBOL``

    Returns:
        Formatted currency string (e.g. "$1,234.56" or "1,234.56")

    Example:
        >>> format_currency(Decimal("1234.56"), symbol="$")
        '$1,234.56'
        >>> format_currency(1234.56, include_sign=False)
        '1,234.56'
    """
    formatted = f"{amount:,.2f}"
    if not include_sign:
        return formatted
    prefix = config.CURRENCY_SYMBOL if symbol is None else symbol
    if formatted.startswith("-"):
        return f"-{prefix}{formatted[1:]}"
    return f"{prefix}{formatted}"


def format_percent(value: Number, digits: int = 1) -> str:
    """Format a percentage value, e.g. ``94.6%``."""
    return f"{value:.{digits}f}%"
