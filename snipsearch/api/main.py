"""
FastAPI application: structured logging, error handlers, snippet and search routes.
The embedding model is loaded lazily on first use, not at startup.
"""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from snipsearch.api.errors import register_error_handlers
from snipsearch.api.routes import router as api_router
from snipsearch.config.settings import LOG_LEVEL
from snipsearch.services.db import ensure_schema, get_pool
from snipsearch.services.storage import SnippetStore

# Structured logging: key-value style for machine parsing.
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(levelname)s %(name)s %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create DB pool and schema on startup; close on shutdown."""
    pool = None
    try:
        pool = await get_pool()
        if pool is not None:
            await ensure_schema(pool)
    except Exception as e:
        logger.warning("DB pool not available: %s", e)
        if pool is not None:
            await pool.close()
        pool = None
    app.state.store = SnippetStore(pool) if pool is not None else None
    yield
    if pool is not None:
        await pool.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI app."""
    app = FastAPI(
        title="Snippet Search API",
        description="Store code snippets and find them by semantic similarity.",
        version="0.1.0",
        lifespan=lifespan,
    )
    register_error_handlers(app)
    app.include_router(api_router, tags=["health", "snippets"])
    logger.info("Application configured")
    return app


app = create_app()
