# routes_charts.py
"""
Chart widget endpoints.
"""

from fastapi import APIRouter, Depends, Query
from pymongo.database import Database

from database import TRANSACTIONS, utcnow
from app.deps import get_current_user, get_db
from app.responses import ok
from app.services.ledger import date_window
from app.services.charts import (
    ChartPeriod,
    ChartSummaryPeriod,
    build_chart_data,
    chart_summary,
    chart_window_start,
)

router = APIRouter(prefix="/api/charts", dependencies=[Depends(get_current_user)])


@router.get("/data")
def chart_data(
    period: ChartPeriod = Query(ChartPeriod.MONTHLY),
    months: int = Query(12, ge=1, le=24),
    db: Database = Depends(get_db),
):
    now = utcnow()
    start = chart_window_start(period, months, now)
    transactions = list(db[TRANSACTIONS].find(date_window(start)))
    return ok("Chart data retrieved successfully", build_chart_data(transactions, period, months, now))


@router.get("/summary")
def chart_data_summary(
    period: ChartSummaryPeriod = Query(ChartSummaryPeriod.CURRENT_MONTH),
    db: Database = Depends(get_db),
):
    transactions = list(db[TRANSACTIONS].find(period.date_filter(utcnow())))
    return ok("Chart summary retrieved successfully", chart_summary(transactions))
