"""Display formatting for money, percentages, quantities and times."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, localcontext
from typing import Optional, Union

Number = Union[Decimal, int, float]

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
    "BTC": "₿",
}

DATE_FORMAT_FULL = "%b %d, %Y %H:%M"
DATE_FORMAT_DATE_ONLY = "%b %d, %Y"

_LEADING_NUMBER = re.compile(r"-?(\d+(\.\d*)?|\.\d+)")


def _to_decimal(value: Number) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def format_currency(amount: Number, currency: str = "USD", decimals: int = 2) -> str:
    """Format as money, e.g. -$1,234.50. Unknown currencies use "$"."""
    value = _to_decimal(amount)
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), "$")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{decimals}f}"


def format_percentage(value: Number, decimals: int = 2) -> str:
    """Signed percentage, e.g. +2.50% or -0.75%."""
    value = _to_decimal(value)
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{decimals}f}%"


def format_compact_number(value: Number) -> str:
    """Abbreviate with K, M or B suffixes."""
    value = _to_decimal(value)
    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    for threshold, suffix in ((Decimal("1e9"), "B"), (Decimal("1e6"), "M"), (Decimal("1e3"), "K")):
        if magnitude >= threshold:
            return f"{sign}{magnitude / threshold:.2f}{suffix}"
    return f"{sign}{magnitude:.2f}"


def format_quantity(quantity: Number, max_decimals: int = 8) -> str:
    """Round to `max_decimals` and drop trailing zeros."""
    value = _to_decimal(quantity)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + max_decimals + 2)
        value = value.quantize(Decimal(1).scaleb(-max_decimals)).normalize()
    if value == 0:
        return "0"
    return f"{value:f}"


def format_date(when: datetime, fmt: str = DATE_FORMAT_FULL) -> str:
    return when.strftime(fmt)


def format_relative_time(when: datetime, now: Optional[datetime] = None) -> str:
    """Human-friendly age, e.g. "Just now", "3 hours ago".

    Anything a week or older is shown as a date.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)

    seconds = int((now - when).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if seconds < 60:
        return "Just now"
    if minutes < 60:
        return f"{minutes} {'minute' if minutes == 1 else 'minutes'} ago"
    if hours < 24:
        return f"{hours} {'hour' if hours == 1 else 'hours'} ago"
    if days < 7:
        return f"{days} {'day' if days == 1 else 'days'} ago"
    return format_date(when, DATE_FORMAT_DATE_ONLY)


def parse_formatted_number(value: str) -> Decimal:
    """Parse text such as "$1,234.50" back to a number (0 if none found)."""
    cleaned = re.sub(r"[^0-9.\-]", "", value)
    match = _LEADING_NUMBER.match(cleaned)
    if match is None:
        return Decimal("0")
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return Decimal("0")
