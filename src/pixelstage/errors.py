"""Error kinds raised by the staging store and the pipeline stages.

Each error carries the HTTP status it maps to and a short client-facing
message. The API layer turns them into responses in one place.
"""

from __future__ import annotations

from fastapi import status


class PixelStageError(Exception):
    """Base class for all errors surfaced to clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal error."

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NoFilePresent(PixelStageError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "No file uploaded."


class UnsupportedMediaType(PixelStageError):
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    default_detail = "Invalid file type."


class PayloadTooLarge(PixelStageError):
    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    default_detail = "File too large."


class MissingInput(PixelStageError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "File path is required."


class InvalidIdentity(PixelStageError):
    """A file reference that would resolve outside the staging directory."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid file path."


class InvalidParameter(PixelStageError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid parameter."


class NotFound(PixelStageError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "File not found."


class ProcessingFailed(PixelStageError):
    default_detail = "Error processing image."


class StreamFailure(PixelStageError):
    default_detail = "Error downloading file."


class IdentityCollision(PixelStageError):
    default_detail = "Staged file already exists."


class ServiceBusy(PixelStageError):
    """No transform slot became free within the queue timeout."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Server busy, try again later."
