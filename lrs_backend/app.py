"""
LRS application.

FastAPI application wiring the LearningRecordStore to the xAPI routes.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from lrs_backend.api import build_router, setup_exception_handlers
from lrs_backend.config import Settings, get_settings
from lrs_backend.logging_utils import setup_logging
from lrs_backend.lrs import LearningRecordStore


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start the LRS with the app and stop it on shutdown."""
    lrs: LearningRecordStore = app.state.lrs
    await lrs.start()
    try:
        yield
    finally:
        await lrs.stop()


def create_app(
    settings: Optional[Settings] = None,
    lrs: Optional[LearningRecordStore] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    setup_logging(level=settings.log_level, json_output=settings.log_json, log_file=settings.log_file)

    app = FastAPI(title="LRS", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.lrs = lrs or LearningRecordStore.from_settings(settings)

    setup_exception_handlers(app)
    app.include_router(build_router(settings.url_prefix))
    return app
