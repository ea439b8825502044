# app/services/export.py
# Role: CSV export of transactions with caller-selected columns.

import csv
import io
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from app.services.transactions import serialize_transaction

EXPORT_COLUMNS = ("name", "email", "date", "amount", "status", "type", "category", "description")
SUPPORTED_FORMATS = ("csv",)


class ExportError(ValueError):
    """Raised for export parameters the caller has to fix."""


def validate_columns(columns: List[str]) -> List[str]:
    if not columns:
        raise ExportError("At least one column must be selected")
    unknown = [c for c in columns if c not in EXPORT_COLUMNS]
    if unknown:
        raise ExportError(f"Unknown export column(s): {', '.join(unknown)}")
    return columns


def parse_bound(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """
    Parse an export date bound. A bare YYYY-MM-DD end bound covers the whole day.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ExportError(f"Invalid date: {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - (parsed.utcoffset() or timedelta(0))
    if end_of_day and len(value) == 10:
        parsed = parsed + timedelta(days=1) - timedelta(milliseconds=1)
    return parsed


def render_csv(transactions: Iterable[Dict[str, Any]], columns: List[str]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(columns)
    for tx in transactions:
        row = serialize_transaction(tx)
        writer.writerow([row.get(column) for column in columns])
    return buffer.getvalue()
