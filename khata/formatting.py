"""
Display formatting helpers.

Amounts are shown in a single fixed locale: thousands grouped with commas,
at most two decimals, trailing zeros dropped down to the configured minimum.
"""

import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from khata.config import get_settings
from khata.models.ledger import as_utc, utc_now


MAX_FRACTION_DIGITS = 2

_WORD = re.compile(r"\w\S*")


def format_currency(
    amount: Union[Decimal, int, float, str],
    symbol: Optional[str] = None,
    min_decimals: Optional[int] = None,
) -> str:
    """
    Format an amount for display, e.g. `Rs 1,500` or `-Rs 12.5`.
    """
    app = get_settings().app
    symbol = app.currency_symbol if symbol is None else symbol
    min_decimals = app.currency_decimals if min_decimals is None else min_decimals
    min_decimals = min(min_decimals, MAX_FRACTION_DIGITS)

    value = Decimal(str(amount)).quantize(
        Decimal(1).scaleb(-MAX_FRACTION_DIGITS), rounding=ROUND_HALF_UP
    )
    sign = "-" if value < 0 else ""
    text = f"{abs(value):,.{MAX_FRACTION_DIGITS}f}"

    whole, _, fraction = text.partition(".")
    fraction = fraction.rstrip("0")
    if len(fraction) < min_decimals:
        fraction = fraction.ljust(min_decimals, "0")

    number = f"{whole}.{fraction}" if fraction else whole
    prefix = f"{symbol} " if symbol else ""
    return f"{sign}{prefix}{number}"


def title_case(text: str) -> str:
    """Capitalize the first letter of each word and lowercase the rest."""
    return _WORD.sub(lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), text)


def days_since(when: datetime, now: Optional[datetime] = None) -> int:
    """Whole days elapsed since `when` (never negative)."""
    now = as_utc(now) if now else utc_now()
    return max((now - as_utc(when)).days, 0)
