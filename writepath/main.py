"""writepath API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map WritePathError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and AuditLogWriter initialized on startup via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - The audit writer lives on app.state so tests can swap its store
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from writepath.api.error_handlers import register_error_handlers
from writepath.api.routes import audit, health
from writepath.config import get_settings
from writepath.infrastructure.database import init_db
from writepath.infrastructure.observability import setup_logging
from writepath.infrastructure.record_store import SqlRecordStore
from writepath.services.audit_log_writer import AuditLogWriter

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
    app.state.audit_writer = AuditLogWriter(SqlRecordStore(manager.session_factory))
    logger.info("writepath API started")
    yield
    await manager.dispose()
    logger.info("writepath API shutting down")


app = FastAPI(title="writepath API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(audit.router)

register_error_handlers(app)
