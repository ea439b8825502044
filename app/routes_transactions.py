# routes_transactions.py
"""
Routes related to the transaction list, single transactions and CSV export.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from pydantic import ValidationError
from pymongo.database import Database

from schemas import DemoRequest, ExportRequest, TransactionCreate
from app.deps import get_current_user, get_db
from app.responses import ok
from app.services.demo_data import generate_demo_transactions
from app.services.export import SUPPORTED_FORMATS, ExportError, parse_bound, render_csv, validate_columns
from app.services.transaction_query import DateRange, SortDirection, SortField, TransactionQuery
from app.services.transactions import (
    create_transaction,
    delete_transaction,
    find_transactions,
    get_transaction,
    list_transactions,
    pagination,
    serialize_transaction,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", dependencies=[Depends(get_current_user)])


def build_query(**params) -> TransactionQuery:
    try:
        return TransactionQuery(**params)
    except ValidationError as e:
        first = e.errors()[0]
        raise HTTPException(status_code=400, detail=f"Invalid value for {first['loc'][0]}: {first['msg']}")


@router.get("/transactions")
def transactions_list(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = Query(""),
    status_filter: str = Query("all", alias="status"),
    type_filter: str = Query("all", alias="type"),
    category: str = Query("all"),
    date_range: DateRange = Query(DateRange.ALL, alias="dateRange"),
    sort_field: SortField = Query(SortField.DATE, alias="sortField"),
    sort_direction: SortDirection = Query(SortDirection.DESC, alias="sortDirection"),
    db: Database = Depends(get_db),
):
    query = build_query(
        search=search,
        status=status_filter,
        type=type_filter,
        category=category,
        date_range=date_range,
        sort_field=sort_field,
        sort_direction=sort_direction,
    )
    transactions, total = list_transactions(db, query, page, limit)
    return ok(
        "Transactions retrieved successfully",
        [serialize_transaction(tx) for tx in transactions],
        pagination=pagination(page, limit, total),
    )


@router.post("/transactions", status_code=status.HTTP_201_CREATED)
def transactions_create(payload: TransactionCreate, db: Database = Depends(get_db)):
    tx = create_transaction(db, payload)
    return ok("Transaction created successfully", serialize_transaction(tx))


@router.post("/transactions/export")
def transactions_export(payload: ExportRequest, db: Database = Depends(get_db)):
    """
    Stream matching transactions as a CSV attachment.

    Explicit dateRange.start/end bounds win over filters.dateRange.
    """
    if payload.format not in SUPPORTED_FORMATS:
        raise HTTPException(status_code=400, detail=f"Unsupported export format: {payload.format}")
    try:
        columns = validate_columns(payload.columns)
        start = parse_bound(payload.dateRange.start)
        end = parse_bound(payload.dateRange.end, end_of_day=True)
    except ExportError as e:
        raise HTTPException(status_code=400, detail=str(e))

    query = build_query(
        status=payload.filters.status,
        category=payload.filters.category,
        type=payload.filters.type,
        date_range=payload.filters.dateRange,
        start=start,
        end=end,
        sort_field=payload.sort.field,
        sort_direction=payload.sort.direction,
    )
    transactions = find_transactions(db, query)
    logger.info("Exporting %d transactions (%s)", len(transactions), ",".join(columns))

    return Response(
        content=render_csv(transactions, columns),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=transactions.csv"},
    )


@router.get("/transactions/{tx_id}")
def transactions_get(tx_id: str, db: Database = Depends(get_db)):
    tx = get_transaction(db, tx_id)
    if tx is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return ok("Transaction retrieved successfully", serialize_transaction(tx))


@router.delete("/transactions/{tx_id}")
def transactions_delete(tx_id: str, db: Database = Depends(get_db)):
    if not delete_transaction(db, tx_id):
        raise HTTPException(status_code=404, detail="Transaction not found")
    return ok("Transaction deleted successfully")


@router.post("/demo", status_code=status.HTTP_201_CREATED)
def demo_seed(payload: Optional[DemoRequest] = None, db: Database = Depends(get_db)):
    count = generate_demo_transactions(db, (payload or DemoRequest()).count)
    return ok("Demo data generated", {"inserted": count})
