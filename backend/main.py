"""
Live preview FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend.config import settings
from backend.routes import preview as preview_routes
from backend.routes import ws as ws_routes

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Apply LOG_LEVEL to the service and pipeline loggers."""
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    resolved = logging.getLevelName(level)
    if not isinstance(resolved, int):
        logger.warning("Unknown LOG_LEVEL %r, using INFO", level)
        resolved = logging.INFO
    for name in ("livepreview", "backend"):
        logging.getLogger(name).setLevel(resolved)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    The pipeline holds no shared state, so startup only configures logging.
    """
    configure_logging(settings.LOG_LEVEL)
    logger.info(
        "Live preview started (env=%s, grace=%.2fs, react=%s)",
        settings.ENVIRONMENT,
        settings.PREVIEW_GRACE_PERIOD_SECONDS,
        settings.PREVIEW_REACT_VERSION,
    )
    yield
    logger.info("Live preview stopped")


app = FastAPI(
    title="Live Preview",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

# Register routes
app.include_router(preview_routes.router)
app.include_router(ws_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
