"""
Safe parsing helpers shared by the scheduler and the budget optimizer.

Input records arrive as loose JSON-like values, so every helper here returns
a default instead of raising on malformed input. Money is discretised with
``to_cents`` exactly once, at the optimizer boundary.
"""

import math
from datetime import date, datetime, timezone
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any, Optional


def safe_number(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """
    Convert a value to a finite float.

    Numeric strings are accepted; booleans, NaN, infinities and anything
    unparseable yield ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def safe_date(value: Any) -> Optional[datetime]:
    """
    Convert a value to a naive datetime, or None when it cannot be parsed.

    Accepts datetimes, dates, ISO-8601 strings and epoch milliseconds.
    Timezone-aware values are normalised to naive UTC so that every parsed
    deadline is comparable with every other.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def utc_now() -> datetime:
    """Current time as naive UTC, the convention ``safe_date`` normalises to."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_cents(amount: float) -> int:
    """
    Discretise a money amount to integer cents, truncating toward zero.

    The shortest decimal repr of the float is used, so ``0.29`` becomes 29
    rather than the 28 that ``floor(0.29 * 100)`` would give.

    Raises:
        ValueError: if the amount is not finite
    """
    if not math.isfinite(amount):
        raise ValueError(f"cannot convert {amount!r} to cents")
    try:
        cents = (Decimal(repr(float(amount))) * 100).to_integral_value(rounding=ROUND_DOWN)
    except InvalidOperation as exc:
        raise ValueError(f"cannot convert {amount!r} to cents") from exc
    return int(cents)
