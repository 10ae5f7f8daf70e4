"""API route definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
from starlette.datastructures import UploadFile

from pixelstage.api.schemas import (
    DownloadRequest,
    ErrorResponse,
    HealthResponse,
    ProcessRequest,
    ProcessResponse,
    UploadResponse,
)
from pixelstage.pipeline.references import public_path
from pixelstage.pipeline.retrieval import RetrievalRequest
from pixelstage.pipeline.transform import TransformRequest

if TYPE_CHECKING:
    from pixelstage.pipeline.factory import Pipeline
    from pixelstage.workers import WorkerPool

router = APIRouter()

UPLOAD_FIELD = "image"

# The upload form is parsed in the handler so that a missing part and a
# non-file value under ``image`` both reach the upload stage as "no file".
_UPLOAD_REQUEST_BODY = {
    "requestBody": {
        "required": True,
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {UPLOAD_FIELD: {"type": "string", "format": "binary"}},
                    "required": [UPLOAD_FIELD],
                }
            }
        },
    }
}


def _get_pipeline(request: Request) -> Pipeline:
    pipeline: Pipeline = request.app.state.pipeline
    return pipeline


def _get_worker_pool(request: Request) -> WorkerPool:
    pool: WorkerPool = request.app.state.worker_pool
    return pool


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_413_CONTENT_TOO_LARGE: {"model": ErrorResponse},
        status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: {"model": ErrorResponse},
    },
    openapi_extra=_UPLOAD_REQUEST_BODY,
    summary="Upload a PNG or JPEG image",
)
async def upload_image(request: Request) -> UploadResponse:
    """Stage an uploaded image and return its path."""
    pipeline = _get_pipeline(request)
    async with request.form() as form:
        image = form.get(UPLOAD_FIELD)
        if isinstance(image, UploadFile):
            result = await run_in_threadpool(pipeline.upload.accept, image.file, image.content_type, image.filename)
        else:
            result = await run_in_threadpool(pipeline.upload.accept, None, None, None)
    return UploadResponse(file_path=public_path(result.identity), original_filename=result.original_filename)


@router.post(
    "/process",
    response_model=ProcessResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
    summary="Rotate, colour-adjust, and re-encode a staged image",
)
async def process_image(request: Request, payload: ProcessRequest | None = None) -> ProcessResponse:
    """Transform a staged image into a new staged image."""
    pipeline = _get_pipeline(request)
    pool = _get_worker_pool(request)
    payload = payload or ProcessRequest()
    transform_request = TransformRequest(
        reference=payload.file_path,
        brightness=payload.brightness,
        contrast=payload.contrast,
        saturation=payload.saturation,
        rotation=payload.rotation,
        output_format=payload.output_format,
    )
    result = await pool.transform(pipeline.transform, transform_request)
    return ProcessResponse(message=result.message, file_path=public_path(result.identity))


@router.post(
    "/download",
    response_class=StreamingResponse,
    responses={
        status.HTTP_200_OK: {"content": {"image/*": {}}},
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
    summary="Download a staged image as an attachment",
)
async def download_image(request: Request, payload: DownloadRequest | None = None) -> StreamingResponse:
    """Stream a staged image back to the client."""
    pipeline = _get_pipeline(request)
    payload = payload or DownloadRequest()
    download = await run_in_threadpool(
        pipeline.retrieval.open,
        RetrievalRequest(reference=payload.file_path, output_format=payload.output_format),
    )
    return StreamingResponse(
        download.iter_chunks(),
        media_type=download.media_type,
        headers=download.headers,
        background=BackgroundTask(download.close),
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    pipeline = _get_pipeline(request)
    pool = _get_worker_pool(request)
    return HealthResponse(
        status="ok",
        staging_dir=str(pipeline.store.root),
        active_tasks=pool.active_count,
        queue_depth=pool.queue_depth,
    )
