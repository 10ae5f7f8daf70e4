"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pixelstage.api.handlers import pixelstage_error_handler
from pixelstage.api.routes import router
from pixelstage.config import get_settings
from pixelstage.errors import PixelStageError
from pixelstage.pipeline.factory import build_pipeline
from pixelstage.workers import WorkerPool

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    pipeline = build_pipeline(settings)
    app.state.pipeline = pipeline

    logger.info(
        "Starting PixelStage (staging_dir=%s, max_concurrent=%s, max_file_size=%s)",
        pipeline.store.root,
        settings.max_concurrent,
        settings.max_file_size,
    )

    worker_pool = WorkerPool(settings)
    app.state.worker_pool = worker_pool

    logger.info("PixelStage ready")
    yield

    logger.info("Shutting down PixelStage")
    worker_pool.shutdown()
    logger.info("PixelStage shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    application = FastAPI(
        title="PixelStage",
        description="Upload, transform, and download raster images through a local staging directory",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(PixelStageError, pixelstage_error_handler)
    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run("pixelstage.main:app", host=settings.host, port=settings.port)
