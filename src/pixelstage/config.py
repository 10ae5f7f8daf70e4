"""Environment-based configuration for PixelStage."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from PIXELSTAGE_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PIXELSTAGE_",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3002
    cors_allow_origins: list[str] = ["*"]
    log_level: str = "INFO"

    # Staging
    staging_dir: Path = Path("uploads")

    # Concurrency
    max_concurrent: int = Field(default=2, ge=1)
    queue_timeout: float = Field(default=5.0, gt=0)

    # Input limits
    max_file_size: int = Field(default=20_971_520, ge=1)
    max_image_pixels: int = Field(default=16_777_216, ge=1)

    # Encoding
    jpeg_quality: int = Field(default=80, ge=1, le=100)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
