# app/deps.py
# Role: Shared FastAPI dependencies.
#       Exposes the settings and MongoDB handle stored on app.state by the
#       app factory, and the bearer-token dependency that resolves the current user.

"""
Shared dependencies for the finance dashboard API.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pymongo.database import Database

from config import Settings
from database import USERS, to_object_id
from app.security import decode_access_token

logger = logging.getLogger(__name__)

# auto_error is off so a missing token maps to 401 and a bad one to 403
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# -------------------------------------------------------------------
# App state
# -------------------------------------------------------------------

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Database:
    """
    FastAPI dependency returning the MongoDB handle opened by the app lifespan.

    Typical usage in routes:
        db: Database = Depends(get_db)
    """
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db


# -------------------------------------------------------------------
# Authentication
# -------------------------------------------------------------------

def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    invalid_token = HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Invalid or expired token",
    )
    try:
        payload = decode_access_token(token, settings)
    except JWTError as e:
        logger.warning("Token verification failed: %s", e)
        raise invalid_token

    user_id = to_object_id(payload.get("id"))
    if user_id is None:
        raise invalid_token

    user = db[USERS].find_one({"_id": user_id, "is_active": True})
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    return {
        "id": str(user["_id"]),
        "email": user["email"],
        "name": user["name"],
        "role": user.get("role", "user"),
    }
