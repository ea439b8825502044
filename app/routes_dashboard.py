# app/routes_dashboard.py

from fastapi import APIRouter, Depends
from pymongo import DESCENDING
from pymongo.database import Database

from database import TRANSACTIONS, utcnow
from app.deps import get_current_user, get_db
from app.responses import ok
from app.services.dashboard import build_dashboard

router = APIRouter(prefix="/api", dependencies=[Depends(get_current_user)])

RECENT_LIMIT = 5


@router.get("/dashboard")
def dashboard(db: Database = Depends(get_db)):
    transactions = list(db[TRANSACTIONS].find({}))
    recent = list(
        db[TRANSACTIONS]
        .find({})
        .sort([("date", DESCENDING), ("_id", DESCENDING)])
        .limit(RECENT_LIMIT)
    )
    return ok("Dashboard data retrieved successfully", build_dashboard(transactions, recent, utcnow()))
