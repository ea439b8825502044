"""
Finance Dashboard API.

Creates the FastAPI app, wires MongoDB through the lifespan (or an injected
handle), installs the JSON error envelope, and registers the route modules.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database

from config import Settings
from database import connect, ensure_indexes
from app.responses import register_exception_handlers
from app.routes_root import router as root_router
from app.routes_auth import router as auth_router
from app.routes_transactions import router as transactions_router
from app.routes_dashboard import router as dashboard_router
from app.routes_analytics import router as analytics_router
from app.routes_charts import router as charts_router

logger = logging.getLogger("finance-dashboard")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # An injected handle (tests, scripts) is used as-is and not closed here
    client = None
    if getattr(app.state, "db", None) is None:
        settings: Settings = app.state.settings
        client = connect(settings.mongodb_uri, settings.db_name)
        app.state.db = client[settings.db_name]
        try:
            ensure_indexes(app.state.db)
        except Exception:
            logger.exception("Index creation failed")

    yield

    if client is not None:
        client.close()
        app.state.db = None
        logger.info("MongoDB connection closed")


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Finance Dashboard API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db
    if db is not None:
        ensure_indexes(db)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Health (public)
    app.include_router(root_router)

    # Register/login (public) and profile endpoints
    app.include_router(auth_router)

    # Transaction list, CRUD, export, demo seeding
    app.include_router(transactions_router)

    # Dashboard cards, analytics payloads, chart series
    app.include_router(dashboard_router)
    app.include_router(analytics_router)
    app.include_router(charts_router)

    return app


# `uvicorn main:app` entry point
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.settings
    if settings.jwt_secret == Settings().jwt_secret:
        logger.warning("JWT_SECRET is not set; using the development default")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
