# app/services/transactions.py
# Role: Transaction store operations over the "data" collection:
#       paginated listing, single-record reads/writes, and the response shape
#       the dashboard client expects for one transaction.

import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pymongo.database import Database

from database import TRANSACTIONS, create_document, to_object_id, utcnow
from schemas import TransactionCreate
from app.security import DEFAULT_AVATAR
from app.services.ledger import Direction, coerce_datetime, direction_of
from app.services.transaction_query import TransactionQuery


def serialize_transaction(tx: Dict[str, Any], signed: bool = False) -> Dict[str, Any]:
    """
    Shape a stored transaction for the client.

    With signed=True expense amounts are reported as negative numbers,
    which is how the dashboard's recent-transactions widget renders them.
    """
    direction = direction_of(tx)
    amount = tx.get("amount", 0)
    if signed and direction is Direction.EXPENSE:
        amount = -abs(amount)

    when = tx.get("date")
    if isinstance(when, datetime):
        when = when.isoformat()

    return {
        "id": str(tx["_id"]),
        "name": tx.get("user_name") or "Unknown User",
        "email": f"{tx.get('user_id')}@example.com",
        "date": when,
        "amount": amount,
        "status": tx.get("status") or "Completed",
        "type": direction.value,
        "category": tx.get("category"),
        "avatar": tx.get("user_profile") or DEFAULT_AVATAR,
        "userId": tx.get("user_id"),
        "description": f"{tx.get('category')} transaction",
    }


def list_transactions(
    db: Database,
    query: TransactionQuery,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Dict[str, Any]], int]:
    """Return one page of matching documents plus the total match count."""
    mongo_filter = query.to_filter()
    total = db[TRANSACTIONS].count_documents(mongo_filter)
    cursor = (
        db[TRANSACTIONS]
        .find(mongo_filter)
        .sort(query.sort_spec())
        .skip((page - 1) * limit)
        .limit(limit)
    )
    return list(cursor), total


def pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def find_transactions(db: Database, query: TransactionQuery) -> List[Dict[str, Any]]:
    return list(db[TRANSACTIONS].find(query.to_filter()).sort(query.sort_spec()))


def get_transaction(db: Database, tx_id: str) -> Optional[Dict[str, Any]]:
    oid = to_object_id(tx_id)
    if oid is None:
        return None
    return db[TRANSACTIONS].find_one({"_id": oid})


def create_transaction(db: Database, payload: TransactionCreate) -> Dict[str, Any]:
    data = payload.model_dump()
    # stored as naive UTC, like everything pymongo reads back
    data["date"] = coerce_datetime(data.get("date")) or utcnow()
    if data.get("direction") is None:
        # absent direction keeps the category rule in charge
        data.pop("direction")
    inserted_id = create_document(db, TRANSACTIONS, data)
    return get_transaction(db, inserted_id)


def delete_transaction(db: Database, tx_id: str) -> bool:
    oid = to_object_id(tx_id)
    if oid is None:
        return False
    return db[TRANSACTIONS].delete_one({"_id": oid}).deleted_count > 0
