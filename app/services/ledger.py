# app/services/ledger.py
# Role: Small primitives shared by the query, reporting, dashboard and chart services:
#       income/expense classification, amount magnitude, date coercion,
#       money rounding and calendar-month arithmetic.

import math
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

REVENUE_CATEGORY = "Revenue"


class Direction(str, Enum):
    INCOME = "Income"
    EXPENSE = "Expense"


def direction_of(tx: Dict[str, Any]) -> Direction:
    """
    Classify a transaction as income or expense.

    An explicit "direction" field wins. Documents without one fall back to the
    legacy rule: category "Revenue" is income, every other category is expense.
    """
    explicit = tx.get("direction")
    if explicit in (Direction.INCOME.value, Direction.EXPENSE.value):
        return Direction(explicit)
    if tx.get("category") == REVENUE_CATEGORY:
        return Direction.INCOME
    return Direction.EXPENSE


def is_income(tx: Dict[str, Any]) -> bool:
    return direction_of(tx) is Direction.INCOME


def magnitude(tx: Dict[str, Any]) -> float:
    return abs(float(tx.get("amount") or 0))


def round_to(value: float, places: int) -> float:
    """Round half up, matching Math.round(x * 10**places) / 10**places."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def round_money(value: float) -> float:
    return round_to(value, 2)


def percentage(part: float, whole: float) -> float:
    if not whole:
        return 0
    return round_money(part / whole * 100)


def coerce_datetime(value: Any) -> Optional[datetime]:
    """Turn a stored date (BSON datetime, date or ISO-8601 string) into naive UTC."""
    if isinstance(value, datetime):
        when = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        try:
            when = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if when.tzinfo is not None:
        when = when.astimezone(timezone.utc).replace(tzinfo=None)
    return when


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_start(now: datetime, months_back: int = 0) -> datetime:
    year, month = shift_month(now.year, now.month, -months_back)
    return datetime(year, month, 1)


def month_label(year: int, month: int) -> str:
    return datetime(year, month, 1).strftime("%b %Y")


def short_month(year: int, month: int) -> str:
    return datetime(year, month, 1).strftime("%b")


def iso_string(when: datetime) -> str:
    """Millisecond ISO-8601 with a Z suffix, the layout of legacy string dates."""
    return when.strftime("%Y-%m-%dT%H:%M:%S.") + f"{when.microsecond // 1000:03d}Z"


def date_window(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    end_exclusive: bool = False,
) -> Dict[str, Any]:
    """
    Mongo filter on "date" between start and end (inclusive unless end_exclusive).

    Older documents carry the date as an ISO-8601 string rather than a BSON
    datetime. MongoDB never compares across the two types, so each bound is
    matched once as a datetime and once as a string. UTC ISO strings sort
    lexically in chronological order.
    """
    upper = "$lt" if end_exclusive else "$lte"
    as_datetime: Dict[str, Any] = {}
    as_string: Dict[str, Any] = {}
    if start is not None:
        as_datetime["$gte"] = start
        as_string["$gte"] = iso_string(start)
    if end is not None:
        as_datetime[upper] = end
        as_string[upper] = iso_string(end)
    if not as_datetime:
        return {}
    return {"$or": [{"date": as_datetime}, {"date": as_string}]}
