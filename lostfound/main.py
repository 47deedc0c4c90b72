"""Lost & Found API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map LostFoundError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup and disposed on shutdown via lifespan

Design Decisions:
    - Pending solicit notifications are drained before the engine is disposed
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lostfound import __version__
from lostfound.api.error_handlers import register_error_handlers
from lostfound.api.routes import health, objects
from lostfound.config import get_settings
from lostfound.infrastructure.database import init_db
from lostfound.infrastructure.observability import setup_logging
from lostfound.services.object_lifecycle import drain_notifications

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
    logger.info("Lost & Found API started")
    yield
    logger.info("Lost & Found API shutting down")
    await drain_notifications()
    await manager.dispose()


app = FastAPI(
    title="Lost & Found API", version=__version__, lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(objects.router)

register_error_handlers(app)
