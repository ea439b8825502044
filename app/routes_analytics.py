# routes_analytics.py
"""
Analytics endpoints: the full reporting payload and a period summary.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo.database import Database

from database import TRANSACTIONS, utcnow
from app.deps import get_current_user, get_db
from app.responses import ok
from app.services.analytics import (
    AnalyticsPeriod,
    SummaryPeriod,
    analytics_date_filter,
    build_analytics,
    build_insights,
    summarize,
)
from app.services.ledger import coerce_datetime, date_window

router = APIRouter(prefix="/api/analytics", dependencies=[Depends(get_current_user)])


@router.get("")
def analytics(
    period: AnalyticsPeriod = Query(AnalyticsPeriod.SIX_MONTHS),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: Database = Depends(get_db),
):
    start, end = coerce_datetime(start_date), coerce_datetime(end_date)
    if start and end and start > end:
        raise HTTPException(status_code=400, detail="startDate must not be after endDate")

    date_filter = analytics_date_filter(period, utcnow(), start, end)
    transactions = list(db[TRANSACTIONS].find(date_filter))
    message = (
        "Analytics data retrieved successfully"
        if transactions
        else "No data available for the selected period"
    )
    return ok(message, build_analytics(transactions))


@router.get("/summary")
def analytics_summary(
    period: SummaryPeriod = Query(SummaryPeriod.ONE_YEAR),
    db: Database = Depends(get_db),
):
    now = utcnow()
    start = period.start(now)
    transactions = list(db[TRANSACTIONS].find(date_window(start)))
    return ok("Analytics summary retrieved successfully", {
        "summary": summarize(transactions),
        "insights": build_insights(transactions, start, now),
        "period": period.value,
        "dataPoints": len(transactions),
    })
