"""Exception handlers mapping pipeline errors to HTTP responses."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from pixelstage.errors import PixelStageError

logger = logging.getLogger(__name__)


async def pixelstage_error_handler(request: Request, exc: PixelStageError) -> JSONResponse:
    """Render a :class:`PixelStageError` as ``{"detail": ...}`` with its status."""
    logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
