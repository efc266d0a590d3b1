"""Formatting utilities for currency and text display."""

from __future__ import annotations

from typing import Optional, Union


def format_currency(amount: Optional[Union[float, int]], include_sign: bool = True) -> str:
    """Format an amount in Brazilian reais.

    Args:
        amount: The amount to format
        include_sign: Whether to include the ``R$`` prefix

    Returns:
        Formatted currency string (e.g., "R$ 1.234,56" or "1.234,56")

    Example:
        >>> format_currency(1234.56)
        'R$ 1.234,56'
        >>> format_currency(-50, include_sign=False)
        '-50,00'
    """
    value = float(amount or 0)
    # Swap separators to the pt-BR convention
    formatted = f"{abs(value):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if value < 0 else ""
    return f"{sign}R$ {formatted}" if include_sign else f"{sign}{formatted}"


def escape_currency_for_markdown(amount: Optional[Union[float, int]]) -> str:
    """Format an amount and escape the dollar sign for Streamlit markdown.

    Example:
        >>> escape_currency_for_markdown(10)
        'R\\\\$ 10,00'
    """
    return format_currency(amount).replace("$", "\\$")


def format_status(status: str) -> str:
    return {
        'overdue': 'Overdue',
        'due_soon': 'Due soon',
    }.get(status, '')
