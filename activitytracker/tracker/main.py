"""
Admin Activity Tracker: FastAPI application entrypoint.
Wires logging, the section map, the cleanup schedule, rate limiting,
exception handlers and the v1 routers.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from tracker.api.v1.router import api_router
from tracker.core.config import settings
from tracker.core.dependencies import load_section_map
from tracker.core.exceptions import register_exception_handlers
from tracker.core.logging import configure_logging
from tracker.db.session import AsyncSessionLocal, engine
from tracker.scheduler import start_scheduler, stop_scheduler
from tracker.services.dedup import DedupContext
from tracker.services.retention_service import RetentionService

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)


# ── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Fails fast on an unreadable section map, then runs the retention
    schedule for as long as the application is up.
    """
    configure_logging(settings)
    section_map = load_section_map(settings.ENTITY_SECTIONS_FILE)
    logger.info(
        "Starting %s v%s (tracking %s, %d mapped entity types)",
        settings.APP_NAME,
        settings.APP_VERSION,
        "enabled" if settings.TRACKER_ENABLED else "disabled",
        len(section_map.sections),
    )
    app.state.scheduler = start_scheduler(RetentionService(AsyncSessionLocal, settings))
    yield
    stop_scheduler(app.state.scheduler)
    await engine.dispose()
    logger.info("%s stopped", settings.APP_NAME)


# ── Application factory ───────────────────────────────────────────────────────
def create_application() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=(
            "Admin activity tracking: snapshot diffs of entity changes, "
            "an append-only activity trail and retention-based cleanup."
        ),
        lifespan=lifespan,
    )

    # Invoice memo lives for the process; each request opens its own latch scope
    app.state.dedup = DedupContext()
    app.state.scheduler = None

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]
    register_exception_handlers(app)

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health", tags=["Health"], include_in_schema=False)
    async def health_check() -> dict[str, Any]:
        scheduler = app.state.scheduler
        return {
            "status": "ok",
            "service": settings.APP_NAME,
            "tracking": "enabled" if settings.TRACKER_ENABLED else "disabled",
            "excluded_sections": settings.EXCLUDED_SECTIONS,
            "cleanup_scheduled": bool(scheduler and scheduler.running),
        }

    return app


app = create_application()
