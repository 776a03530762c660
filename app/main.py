"""
FastAPI application entrypoint for the Feen sync service.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.errors import FeenError
from app.core.logging import configure_logging
from app.dependencies import get_event_publisher

logger = logging.getLogger(__name__)


async def handle_feen_error(request: Request, exc: FeenError) -> JSONResponse:
    """Render domain errors with the status code they carry."""
    if exc.status_code >= 500:
        logger.error("Request failed: %s", exc.message, extra={"path": request.url.path})
    return JSONResponse(status_code=int(exc.status_code), content=exc.to_dict())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Only drain a publisher that was actually created.
    if get_event_publisher.cache_info().currsize:
        get_event_publisher().shutdown(wait=True)


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Feen Sync",
        version="0.1.0",
        description="OAuth token lifecycle, Google Calendar sync and member notifications.",
        lifespan=lifespan,
    )
    app.add_exception_handler(FeenError, handle_feen_error)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app", "handle_feen_error"]
