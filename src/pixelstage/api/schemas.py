"""Pydantic request/response schemas for the PixelStage API.

Wire field names are camelCase (``filePath``); Python attributes are
snake_case with aliases.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UploadResponse(_WireModel):
    """Response for a successful upload."""

    file_path: str = Field(alias="filePath", description="Client-facing path: /uploads/<identity>")
    original_filename: str | None = Field(
        default=None,
        alias="originalFilename",
        description="Filename sent by the client; display only, never part of the stored name",
    )


class ProcessRequest(_WireModel):
    """Transform parameters. Absent or null values fall back to neutral defaults."""

    file_path: str | None = Field(default=None, alias="filePath")
    brightness: float | None = Field(default=None, description="Brightness factor (1.0 = unchanged)")
    contrast: float | None = Field(default=None, description="Contrast factor (1.0 = unchanged)")
    saturation: float | None = Field(default=None, description="Saturation factor (1.0 = unchanged)")
    rotation: float | None = Field(default=None, description="Clockwise rotation in degrees")
    output_format: str | None = Field(default=None, alias="format", description="Output format (default 'jpeg')")


class ProcessResponse(_WireModel):
    """Response for a successful transform."""

    message: str
    file_path: str = Field(alias="filePath")


class DownloadRequest(_WireModel):
    """Download parameters."""

    file_path: str | None = Field(default=None, alias="filePath")
    output_format: str | None = Field(
        default=None,
        alias="format",
        description="Format used for Content-Type and the attachment filename (default 'jpeg')",
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    staging_dir: str
    active_tasks: int
    queue_depth: int


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
