# app/services/transaction_query.py
# Role: Typed builder turning list/export parameters into a MongoDB filter and sort.
#       Every loosely-typed query-string value is validated into an enum or
#       normalized to None ("all" / empty) before it reaches the database.

import re
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ValidationInfo, field_validator
from pymongo import ASCENDING, DESCENDING

from database import utcnow
from app.services.ledger import REVENUE_CATEGORY, Direction, coerce_datetime, date_window


class DateRange(str, Enum):
    LAST_7_DAYS = "7days"
    LAST_30_DAYS = "30days"
    LAST_90_DAYS = "90days"
    ALL = "all"

    @property
    def days(self) -> Optional[int]:
        return {"7days": 7, "30days": 30, "90days": 90}.get(self.value)


class SortField(str, Enum):
    DATE = "date"
    AMOUNT = "amount"
    NAME = "name"
    STATUS = "status"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


# API sort field -> stored document field
SORT_COLUMNS = {
    SortField.DATE: "date",
    SortField.AMOUNT: "amount",
    SortField.NAME: "user_name",
    SortField.STATUS: "status",
}

SEARCH_FIELDS = ("user_name", "user_id", "category")


def _exact_ci(value: str) -> Dict[str, str]:
    return {"$regex": f"^{re.escape(value)}$", "$options": "i"}


def direction_filter(direction: Direction) -> Dict[str, Any]:
    """Match an explicit direction, or the category rule for documents without one."""
    if direction is Direction.INCOME:
        legacy = {"direction": None, "category": REVENUE_CATEGORY}
    else:
        legacy = {"direction": None, "category": {"$ne": REVENUE_CATEGORY}}
    return {"$or": [{"direction": direction.value}, legacy]}


class TransactionQuery(BaseModel):
    status: Optional[str] = None
    category: Optional[str] = None
    type: Optional[Direction] = None
    date_range: DateRange = DateRange.ALL
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    search: Optional[str] = None
    sort_field: SortField = SortField.DATE
    sort_direction: SortDirection = SortDirection.DESC

    @field_validator("status", "category", "search", "type", mode="before")
    @classmethod
    def _all_means_unset(cls, value, info: ValidationInfo):
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip()
            if value == "" or value.lower() == "all":
                return None
            if info.field_name == "type":
                return value.capitalize()
        return value

    @field_validator("start", "end", mode="after")
    @classmethod
    def _naive_utc(cls, value):
        return coerce_datetime(value)

    def to_filter(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        clauses: List[Dict[str, Any]] = []

        if self.search:
            pattern = re.escape(self.search)
            clauses.append({
                "$or": [{field: {"$regex": pattern, "$options": "i"}} for field in SEARCH_FIELDS]
            })

        if self.status:
            clauses.append({"status": _exact_ci(self.status)})

        if self.category:
            clauses.append({"category": _exact_ci(self.category)})

        if self.type:
            clauses.append(direction_filter(self.type))

        # Explicit bounds take precedence over the relative range
        date_clause: Dict[str, Any] = {}
        if self.start or self.end:
            date_clause = date_window(self.start, self.end)
        elif self.date_range.days:
            now = now or utcnow()
            date_clause = date_window(now - timedelta(days=self.date_range.days))
        if date_clause:
            clauses.append(date_clause)

        if not clauses:
            return {}
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}

    def sort_spec(self) -> List[Tuple[str, int]]:
        direction = ASCENDING if self.sort_direction is SortDirection.ASC else DESCENDING
        # _id breaks ties so pages do not overlap
        return [(SORT_COLUMNS[self.sort_field], direction), ("_id", direction)]
