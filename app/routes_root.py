# routes_root.py
"""
Root / basic endpoints (health).
"""

from fastapi import APIRouter, Request

from database import utcnow
from app.responses import ok

router = APIRouter()


@router.get("/api/health")
def health(request: Request):
    """
    Liveness probe. Needs no token.
    """
    db = getattr(request.app.state, "db", None)
    return {
        **ok("Server is running"),
        "timestamp": utcnow().isoformat() + "Z",
        "database": "Connected" if db is not None else "Disconnected",
    }
