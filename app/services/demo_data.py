# app/services/demo_data.py
# Role: Random demo transactions for an empty dashboard.

import logging
import random
from datetime import timedelta
from typing import Optional

from pymongo.database import Database

from database import TRANSACTIONS, utcnow
from app.security import avatar_for_name
from app.services.ledger import REVENUE_CATEGORY

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("u1001", "Olivia Martin"),
    ("u1002", "Jackson Lee"),
    ("u1003", "Isabella Nguyen"),
    ("u1004", "William Kim"),
    ("u1005", "Sofia Davis"),
]
EXPENSE_CATEGORIES = ["Food", "Transport", "Entertainment", "Utilities", "Shopping"]
STATUSES = ["Completed", "Completed", "Paid", "Pending", "Failed"]


def generate_demo_transactions(db: Database, count: int = 50, rng: Optional[random.Random] = None) -> int:
    rng = rng or random.Random()
    now = utcnow()
    docs = []
    for _ in range(count):
        user_id, user_name = rng.choice(DEMO_USERS)
        is_income = rng.random() < 0.3
        docs.append({
            "user_id": user_id,
            "user_name": user_name,
            "amount": round(rng.uniform(500, 5000) if is_income else rng.uniform(10, 800), 2),
            "category": REVENUE_CATEGORY if is_income else rng.choice(EXPENSE_CATEGORIES),
            "status": rng.choice(STATUSES),
            "date": now - timedelta(days=rng.randint(0, 364), minutes=rng.randint(0, 1439)),
            "user_profile": avatar_for_name(user_name),
            "created_at": now,
            "updated_at": now,
        })
    if docs:
        db[TRANSACTIONS].insert_many(docs)
    logger.info("Inserted %d demo transactions", len(docs))
    return len(docs)
