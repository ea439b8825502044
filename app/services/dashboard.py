# app/services/dashboard.py
# Role: Headline dashboard figures. One pass over all transactions yields the
#       all-time totals, current vs. previous calendar month totals for the
#       month-over-month deltas, and the 12-month income/expense chart.

from datetime import datetime
from typing import Any, Dict, List

from app.services.ledger import (
    coerce_datetime,
    is_income,
    magnitude,
    month_start,
    round_money,
    round_to,
    shift_month,
    short_month,
)
from app.services.transactions import serialize_transaction

SAVINGS_RATE = 0.2
CHART_MONTHS = 12


def _savings(balance: float) -> float:
    return balance * SAVINGS_RATE if balance > 0 else 0


def _change(current: float, previous: float, signed_base: bool = False) -> float:
    if signed_base:
        return (current - previous) / abs(previous) * 100 if previous != 0 else 0
    return (current - previous) / previous * 100 if previous > 0 else 0


def _metric(title: str, amount: float, icon: str, change: float, higher_is_increase: bool = True) -> Dict[str, Any]:
    if higher_is_increase:
        change_type = "increase" if change >= 0 else "decrease"
        shown = change
    else:
        # expenses: the card shows the size of the move
        change_type = "decrease" if change <= 0 else "increase"
        shown = abs(change)
    return {
        "title": title,
        "amount": round_money(amount),
        "icon": icon,
        "change": round_to(shown, 1),
        "changeType": change_type,
    }


def build_dashboard(
    transactions: List[Dict[str, Any]],
    recent: List[Dict[str, Any]],
    now: datetime,
) -> Dict[str, Any]:
    current_start = month_start(now)
    previous_start = month_start(now, 1)

    chart: Dict[tuple, Dict[str, float]] = {}
    for offset in range(CHART_MONTHS - 1, -1, -1):
        chart[shift_month(now.year, now.month, -offset)] = {"income": 0.0, "expenses": 0.0}

    income = expenses = 0.0
    current = {"income": 0.0, "expenses": 0.0}
    previous = {"income": 0.0, "expenses": 0.0}

    for tx in transactions:
        amount = magnitude(tx)
        side = "income" if is_income(tx) else "expenses"
        if side == "income":
            income += amount
        else:
            expenses += amount

        when = coerce_datetime(tx.get("date"))
        if when is None:
            continue
        if when >= current_start:
            current[side] += amount
        elif when >= previous_start:
            previous[side] += amount
        bucket = chart.get((when.year, when.month))
        if bucket is not None:
            bucket[side] += amount

    balance = income - expenses
    current_balance = current["income"] - current["expenses"]
    previous_balance = previous["income"] - previous["expenses"]

    metrics = [
        _metric("Balance", balance, "Wallet",
                _change(current_balance, previous_balance, signed_base=True)),
        _metric("Revenue", income, "TrendingUp",
                _change(current["income"], previous["income"])),
        _metric("Expenses", expenses, "CreditCard",
                _change(current["expenses"], previous["expenses"]), higher_is_increase=False),
        _metric("Savings", _savings(balance), "PiggyBank",
                _change(_savings(current_balance), _savings(previous_balance), signed_base=True)),
    ]

    chart_data = [
        {
            "month": short_month(year, month),
            "year": year,
            "income": round_to(values["income"], 0),
            "expenses": round_to(values["expenses"], 0),
        }
        for (year, month), values in chart.items()
    ]

    return {
        "metrics": metrics,
        "chartData": chart_data,
        "recentTransactions": [serialize_transaction(tx, signed=True) for tx in recent],
    }
