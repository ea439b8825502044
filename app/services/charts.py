# app/services/charts.py
# Role: Income/expense series for the chart widget (monthly, weekly, yearly)
#       and the compact chart summary.

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List

from app.services.ledger import (
    coerce_datetime,
    date_window,
    is_income,
    magnitude,
    month_start,
    round_money,
    shift_month,
    short_month,
)

WEEKS = 12


class ChartPeriod(str, Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    YEARLY = "yearly"


class ChartSummaryPeriod(str, Enum):
    CURRENT_MONTH = "current_month"
    LAST_MONTH = "last_month"
    CURRENT_YEAR = "current_year"
    ALL = "all"

    def date_filter(self, now: datetime) -> Dict[str, Any]:
        if self is ChartSummaryPeriod.CURRENT_MONTH:
            return date_window(month_start(now))
        if self is ChartSummaryPeriod.LAST_MONTH:
            return date_window(month_start(now, 1), month_start(now), end_exclusive=True)
        if self is ChartSummaryPeriod.CURRENT_YEAR:
            return date_window(datetime(now.year, 1, 1))
        return {}


def _week_start(when: datetime) -> datetime:
    day = when.date() - timedelta(days=when.weekday())
    return datetime(day.year, day.month, day.day)


def chart_window_start(period: ChartPeriod, months: int, now: datetime) -> datetime:
    if period is ChartPeriod.WEEKLY:
        return _week_start(now) - timedelta(weeks=WEEKS - 1)
    return month_start(now, months - 1)


def _fold(buckets: Dict[Any, Dict[str, float]], key: Any, tx: Dict[str, Any]) -> None:
    bucket = buckets.get(key)
    if bucket is None:
        return
    if is_income(tx):
        bucket["income"] += magnitude(tx)
    else:
        bucket["expenses"] += magnitude(tx)
    bucket["transactionCount"] += 1


def _empty_bucket() -> Dict[str, float]:
    return {"income": 0.0, "expenses": 0.0, "transactionCount": 0}


def _finish(label: Dict[str, Any], bucket: Dict[str, float]) -> Dict[str, Any]:
    return {
        **label,
        "income": round_money(bucket["income"]),
        "expenses": round_money(bucket["expenses"]),
        "netIncome": round_money(bucket["income"] - bucket["expenses"]),
        "transactionCount": bucket["transactionCount"],
    }


def monthly_series(transactions: Iterable[Dict[str, Any]], months: int, now: datetime) -> List[Dict[str, Any]]:
    """Zero-filled series covering the last `months` calendar months, oldest first."""
    buckets = {
        shift_month(now.year, now.month, -offset): _empty_bucket()
        for offset in range(months - 1, -1, -1)
    }
    for tx in transactions:
        when = coerce_datetime(tx.get("date"))
        if when is not None:
            _fold(buckets, (when.year, when.month), tx)

    return [
        _finish({"month": short_month(year, month), "year": year}, bucket)
        for (year, month), bucket in buckets.items()
    ]


def weekly_series(transactions: Iterable[Dict[str, Any]], now: datetime) -> List[Dict[str, Any]]:
    """Zero-filled series over the last 12 weeks, each starting on a Monday."""
    first = _week_start(now) - timedelta(weeks=WEEKS - 1)
    buckets = {first + timedelta(weeks=i): _empty_bucket() for i in range(WEEKS)}
    for tx in transactions:
        when = coerce_datetime(tx.get("date"))
        if when is not None:
            _fold(buckets, _week_start(when), tx)

    return [
        _finish({"month": f"Week of {start:%b %d}", "weekStart": start.date().isoformat()}, bucket)
        for start, bucket in buckets.items()
    ]


def yearly_series(transactions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    buckets: Dict[int, Dict[str, float]] = {}
    for tx in transactions:
        when = coerce_datetime(tx.get("date"))
        if when is None:
            continue
        buckets.setdefault(when.year, _empty_bucket())
        _fold(buckets, when.year, tx)

    return [_finish({"month": str(year)}, buckets[year]) for year in sorted(buckets)]


def build_chart_data(
    transactions: List[Dict[str, Any]],
    period: ChartPeriod,
    months: int,
    now: datetime,
) -> List[Dict[str, Any]]:
    if period is ChartPeriod.WEEKLY:
        return weekly_series(transactions, now)
    if period is ChartPeriod.YEARLY:
        return yearly_series(transactions)
    return monthly_series(transactions, months, now)


def chart_summary(transactions: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    income = expenses = 0.0
    count = 0
    categories: Dict[str, float] = {}

    for tx in transactions:
        amount = magnitude(tx)
        if is_income(tx):
            income += amount
        else:
            expenses += amount
        category = tx.get("category") or "Other"
        categories[category] = categories.get(category, 0.0) + amount
        count += 1

    top_category = None
    if categories:
        name, amount = max(categories.items(), key=lambda item: item[1])
        top_category = {"name": name, "amount": round_money(amount)}

    return {
        "totalIncome": round_money(income),
        "totalExpenses": round_money(expenses),
        "netIncome": round_money(income - expenses),
        "transactionCount": count,
        "avgTransactionAmount": round_money((income + expenses) / count) if count else 0,
        "topCategory": top_category,
        "growthRate": 0,
    }
