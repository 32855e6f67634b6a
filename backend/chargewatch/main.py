"""ChargeWatch API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ChargeWatchError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py to keep this module's imports small
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chargewatch.api.error_handlers import register_error_handlers
from chargewatch.api.routes import (
    admin, charging_sessions, health, stations, users, vehicles,
)
from chargewatch.config import get_settings
from chargewatch.infrastructure.database import init_db
from chargewatch.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("ChargeWatch API started")
    yield
    logger.info("ChargeWatch API shutting down")


app = FastAPI(title="ChargeWatch API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(stations.router)
app.include_router(charging_sessions.router)
app.include_router(admin.router)
app.include_router(users.router)
app.include_router(vehicles.router)

register_error_handlers(app)
