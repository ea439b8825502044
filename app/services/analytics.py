# app/services/analytics.py
# Role: Reporting layer. Each function folds an already-filtered list of
#       transaction documents in one pass into an accumulator keyed by
#       month/category/status/user/amount bucket/day, then maps it to a
#       sorted list with money rounded to cents.

"""
Aggregations behind the analytics endpoints.

All amounts are folded as magnitudes (abs(amount)); whether a transaction
counts as revenue or expense comes from ledger.direction_of().
"""

import math
from bisect import bisect_right
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from app.services.ledger import (
    coerce_datetime,
    date_window,
    is_income,
    magnitude,
    month_label,
    month_start,
    percentage,
    round_money,
)

TOP_USERS = 15
TIME_SERIES_DAYS = 60
PERFORMANCE_MONTHS = 12
COMPLETED_STATUSES = {"Completed", "Paid"}

# (lower bound inclusive, label); the last bucket is open-ended
AMOUNT_BUCKETS = [
    (0, "$0-$100"),
    (100, "$100-$500"),
    (500, "$500-$1K"),
    (1000, "$1K-$5K"),
    (5000, "$5K-$10K"),
    (10000, "$10K+"),
]
_BUCKET_BOUNDS = [lower for lower, _ in AMOUNT_BUCKETS]


class AnalyticsPeriod(str, Enum):
    THREE_MONTHS = "3months"
    SIX_MONTHS = "6months"
    ONE_YEAR = "1year"

    @property
    def months(self) -> int:
        return {"3months": 3, "6months": 6, "1year": 12}[self.value]


class SummaryPeriod(str, Enum):
    THIRTY_DAYS = "30days"
    NINETY_DAYS = "90days"
    SIX_MONTHS = "6months"
    ONE_YEAR = "1year"

    def start(self, now: datetime) -> datetime:
        if self is SummaryPeriod.THIRTY_DAYS:
            return now - timedelta(days=30)
        if self is SummaryPeriod.NINETY_DAYS:
            return now - timedelta(days=90)
        if self is SummaryPeriod.SIX_MONTHS:
            return month_start(now, 6)
        return month_start(now, 12)


# -------------------------------------------------------------------
# Date windows
# -------------------------------------------------------------------

def analytics_date_filter(
    period: AnalyticsPeriod,
    now: datetime,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Dict[str, Any]:
    if start and end:
        return date_window(start, end)
    return date_window(month_start(now, period.months))


# -------------------------------------------------------------------
# Series
# -------------------------------------------------------------------

def monthly_trends(transactions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    months: Dict[tuple, Dict[str, float]] = {}

    for tx in transactions:
        when = coerce_datetime(tx.get("date"))
        if when is None:
            continue
        acc = months.setdefault(
            (when.year, when.month),
            {"revenue": 0.0, "expense": 0.0, "count": 0, "revenue_count": 0, "expense_count": 0},
        )
        amount = magnitude(tx)
        if is_income(tx):
            acc["revenue"] += amount
            acc["revenue_count"] += 1
        else:
            acc["expense"] += amount
            acc["expense_count"] += 1
        acc["count"] += 1

    return [
        {
            "month": month_label(year, month),
            "revenue": round_money(acc["revenue"]),
            "expense": round_money(acc["expense"]),
            "net": round_money(acc["revenue"] - acc["expense"]),
            "transactions": acc["count"],
            "revenueTransactions": acc["revenue_count"],
            "expenseTransactions": acc["expense_count"],
            "avgTransactionSize": round_money((acc["revenue"] + acc["expense"]) / acc["count"]),
        }
        for (year, month), acc in sorted(months.items())
    ]


def category_breakdown(transactions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    categories: Dict[str, Dict[str, float]] = {}
    total = 0.0

    for tx in transactions:
        amount = magnitude(tx)
        acc = categories.setdefault(tx.get("category") or "Other", {"amount": 0.0, "count": 0})
        acc["amount"] += amount
        acc["count"] += 1
        total += amount

    rows = [
        {
            "category": category,
            "amount": round_money(acc["amount"]),
            "count": acc["count"],
            "avgAmount": round_money(acc["amount"] / acc["count"]),
            "percentage": percentage(acc["amount"], total),
        }
        for category, acc in categories.items()
    ]
    rows.sort(key=lambda row: row["amount"], reverse=True)
    return rows


def status_distribution(transactions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    counts: Dict[str, int] = {}
    total = 0

    for tx in transactions:
        status = tx.get("status") or "Completed"
        counts[status] = counts.get(status, 0) + 1
        total += 1

    rows = [
        {"status": status, "count": count, "percentage": percentage(count, total)}
        for status, count in counts.items()
    ]
    rows.sort(key=lambda row: row["count"], reverse=True)
    return rows


def user_activity(transactions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    users: Dict[str, Dict[str, Any]] = {}

    for tx in transactions:
        amount = magnitude(tx)
        when = coerce_datetime(tx.get("date"))
        acc = users.setdefault(
            tx.get("user_id") or "Unknown",
            {"count": 0, "total": 0.0, "revenue": 0.0, "expenses": 0.0, "last": when},
        )
        acc["count"] += 1
        acc["total"] += amount
        if is_income(tx):
            acc["revenue"] += amount
        else:
            acc["expenses"] += amount
        if when is not None and (acc["last"] is None or when > acc["last"]):
            acc["last"] = when

    rows = [
        {
            "user": user,
            "transactions": acc["count"],
            "totalAmount": round_money(acc["total"]),
            "revenue": round_money(acc["revenue"]),
            "expenses": round_money(acc["expenses"]),
            "avgAmount": round_money(acc["total"] / acc["count"]),
            "lastTransaction": acc["last"].isoformat() if acc["last"] else None,
            "netValue": round_money(acc["revenue"] - acc["expenses"]),
        }
        for user, acc in users.items()
    ]
    rows.sort(key=lambda row: row["totalAmount"], reverse=True)
    return rows[:TOP_USERS]


def amount_distribution(transactions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    counts = [0] * len(AMOUNT_BUCKETS)
    totals = [0.0] * len(AMOUNT_BUCKETS)
    total_count = 0

    for tx in transactions:
        amount = magnitude(tx)
        index = bisect_right(_BUCKET_BOUNDS, amount) - 1
        counts[index] += 1
        totals[index] += amount
        total_count += 1

    return [
        {
            "range": label,
            "count": counts[i],
            "totalAmount": round_money(totals[i]),
            "percentage": percentage(counts[i], total_count),
            "avgAmount": round_money(totals[i] / counts[i]),
        }
        for i, (_, label) in enumerate(AMOUNT_BUCKETS)
        if counts[i] > 0
    ]


def time_series(transactions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    days: Dict[str, Dict[str, float]] = {}

    for tx in transactions:
        when = coerce_datetime(tx.get("date"))
        if when is None:
            continue
        acc = days.setdefault(
            when.date().isoformat(),
            {"amount": 0.0, "count": 0, "revenue": 0.0, "expenses": 0.0},
        )
        amount = magnitude(tx)
        acc["amount"] += amount
        acc["count"] += 1
        if is_income(tx):
            acc["revenue"] += amount
        else:
            acc["expenses"] += amount

    rows = [
        {
            "date": day,
            "amount": round_money(acc["amount"]),
            "count": acc["count"],
            "revenue": round_money(acc["revenue"]),
            "expenses": round_money(acc["expenses"]),
            "avgAmount": round_money(acc["amount"] / acc["count"]),
            "net": round_money(acc["revenue"] - acc["expenses"]),
        }
        for day, acc in sorted(days.items())
    ]
    return rows[-TIME_SERIES_DAYS:]


def performance_metrics(transactions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    months: Dict[tuple, Dict[str, float]] = {}

    for tx in transactions:
        when = coerce_datetime(tx.get("date"))
        if when is None:
            continue
        acc = months.setdefault(
            (when.year, when.month),
            {"revenue": 0.0, "expenses": 0.0, "count": 0, "completed": 0},
        )
        amount = magnitude(tx)
        if is_income(tx):
            acc["revenue"] += amount
        else:
            acc["expenses"] += amount
        acc["count"] += 1
        if tx.get("status") in COMPLETED_STATUSES:
            acc["completed"] += 1

    rows = []
    for (year, month), acc in sorted(months.items()):
        revenue, expenses = acc["revenue"], acc["expenses"]
        profit = revenue - expenses
        turnover = revenue + expenses
        rows.append({
            "month": month_label(year, month),
            "revenue": round_money(revenue),
            "expenses": round_money(expenses),
            "profit": round_money(profit),
            "profitMargin": round_money(profit / revenue * 100) if revenue > 0 else 0,
            "completionRate": percentage(acc["completed"], acc["count"]),
            "efficiency": round_money(revenue / turnover * 100) if turnover > 0 else 0,
            "transactions": acc["count"],
        })
    return rows[-PERFORMANCE_MONTHS:]


def summarize(transactions: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    revenue = 0.0
    expenses = 0.0
    count = 0

    for tx in transactions:
        amount = magnitude(tx)
        if is_income(tx):
            revenue += amount
        else:
            expenses += amount
        count += 1

    return {
        "totalRevenue": round_money(revenue),
        "totalExpenses": round_money(expenses),
        "netProfit": round_money(revenue - expenses),
        "avgTransaction": round_money((revenue + expenses) / count) if count else 0,
        "totalTransactions": count,
        "profitMargin": round_money((revenue - expenses) / revenue * 100) if revenue > 0 else 0,
    }


# -------------------------------------------------------------------
# Payloads
# -------------------------------------------------------------------

def build_analytics(transactions: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Full analytics payload; an empty list yields empty series and a zero summary."""
    return {
        "monthlyTrends": monthly_trends(transactions),
        "categoryBreakdown": category_breakdown(transactions),
        "statusDistribution": status_distribution(transactions),
        "userActivity": user_activity(transactions),
        "amountDistribution": amount_distribution(transactions),
        "timeSeriesData": time_series(transactions),
        "performanceMetrics": performance_metrics(transactions),
        "summary": summarize(transactions),
    }


def build_insights(transactions: List[Dict[str, Any]], start: datetime, now: datetime) -> Dict[str, Any]:
    insights: Dict[str, Any] = {
        "topCategory": None,
        "mostActiveUser": None,
        "avgDailyTransactions": 0,
        "growthRate": 0,
    }
    if not transactions:
        return insights

    categories = category_breakdown(transactions)
    users = user_activity(transactions)
    insights["topCategory"] = categories[0] if categories else None
    insights["mostActiveUser"] = users[0] if users else None

    days = max(1, math.ceil((now - start).total_seconds() / 86400))
    insights["avgDailyTransactions"] = round_money(len(transactions) / days)
    return insights
