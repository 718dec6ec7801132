"""Formatting utilities for BRL currency and month labels."""

from __future__ import annotations

import math
from datetime import date
from typing import Union

CURRENCY_SYMBOL = "R$"

PT_MONTHS = ("jan", "fev", "mar", "abr", "mai", "jun", "jul", "ago", "set", "out", "nov", "dez")


def format_currency(amount: Union[float, int], include_symbol: bool = True) -> str:
    """Format an amount the way pt-BR renders BRL.

    Args:
        amount: The amount to format
        include_symbol: Whether to prefix the ``R$`` symbol

    Returns:
        Formatted string with ``.`` as thousands and ``,`` as decimal separator

    Example:
        >>> format_currency(1234.56)
        'R$ 1.234,56'
        >>> format_currency(-50)
        '-R$ 50,00'
    """
    sign = "-" if amount < 0 else ""
    # Swap the en-US separators for pt-BR ones
    body = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    if not include_symbol:
        return f"{sign}{body}"
    return f"{sign}{CURRENCY_SYMBOL} {body}"


def parse_currency(value: Union[str, float, int]) -> float:
    """Parse a user-entered amount into a float.

    Accepts plain numbers, ``1234.56`` (number-input notation) and pt-BR
    notation such as ``R$ 1.234,56``. A single ``.`` is read as a decimal
    point; repeated ``.`` are thousands separators.

    Raises:
        ValueError: If the value is empty or not a number
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a monetary value: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).replace(CURRENCY_SYMBOL, "").replace("\u00a0", "").replace(" ", "").strip()
    if not text:
        raise ValueError("Empty monetary value")

    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        if text.count(",") == 1:
            text = text.replace(",", ".")
        else:
            text = text.replace(",", "")
    elif text.count(".") > 1:
        text = text.replace(".", "")

    return float(text)


def format_month_label(month: date) -> str:
    """Short Portuguese month label, e.g. ``out/26``."""
    return f"{PT_MONTHS[month.month - 1]}/{month.strftime('%y')}"


def format_percent(rate: float) -> str:
    if not math.isfinite(rate):
        return "N/A"
    return f"{rate:g}%"
