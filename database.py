"""
MongoDB access helpers.

The database handle is created once by the application lifespan and passed
around explicitly; nothing in this module holds a connection.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pydantic import BaseModel

logger = logging.getLogger(__name__)

USERS = "users"
TRANSACTIONS = "data"


def utcnow() -> datetime:
    """Naive UTC timestamp, the form pymongo hands back from the server."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def connect(uri: str, db_name: str) -> MongoClient:
    client = MongoClient(uri)
    logger.info("Connected to MongoDB database %s", db_name)
    return client


def ensure_indexes(db: Database) -> None:
    db[USERS].create_index("email", unique=True)
    db[TRANSACTIONS].create_index([("date", DESCENDING)])
    db[TRANSACTIONS].create_index([("user_id", ASCENDING)])
    logger.info("Database indexes ensured")


def to_object_id(value: Any) -> Optional[ObjectId]:
    # ObjectId(None) would mint a fresh id, so reject anything that is not a valid hex id
    if not ObjectId.is_valid(value):
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def create_document(db: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a document, stamping created_at/updated_at, and return its id as a string."""
    if isinstance(data, BaseModel):
        doc = data.model_dump()
    else:
        doc = dict(data)
    now = utcnow()
    doc.setdefault("created_at", now)
    doc["updated_at"] = now
    result = db[collection_name].insert_one(doc)
    return str(result.inserted_id)


def update_document(db: Database, collection_name: str, doc_id: ObjectId, fields: Dict[str, Any]) -> int:
    result = db[collection_name].update_one(
        {"_id": doc_id},
        {"$set": {**fields, "updated_at": utcnow()}},
    )
    return result.matched_count


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    cursor = db[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
