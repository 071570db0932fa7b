"""ParkLedger API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ParkingError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and ledger services initialized on startup via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Tables auto-created only for SQLite URLs; Postgres schema is owned by alembic
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from parkledger.api.dependencies import init_services
from parkledger.api.error_handlers import register_error_handlers
from parkledger.api.routes import health, sessions, vehicles, views
from parkledger.config import get_settings
from parkledger.infrastructure.database import init_db
from parkledger.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_url.startswith("sqlite"):
        await manager.create_all()
    init_services(settings, manager.session)
    logger.info("ParkLedger API started")
    yield
    await manager.dispose()
    logger.info("ParkLedger API shutting down")


app = FastAPI(
    title="ParkLedger API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(vehicles.router)
app.include_router(sessions.router)
app.include_router(views.router)

register_error_handlers(app)
