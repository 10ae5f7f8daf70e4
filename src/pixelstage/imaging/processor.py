"""Image processing: rotation, colour adjustment, and re-encoding.

Operations are applied in a fixed order: rotate, then brightness, contrast
and saturation, then encode to the requested output format. Neutral values
(rotation of a multiple of 360, factors of exactly 1.0) are skipped so an
all-default transform leaves pixels untouched.
"""

from __future__ import annotations

import io
import logging
import struct
import zlib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from PIL import Image, ImageEnhance

from pixelstage.errors import ProcessingFailed
from pixelstage.imaging.formats import DEFAULT_FORMAT, FORMAT_REGISTRY, OutputFormat

if TYPE_CHECKING:
    from typing import BinaryIO

    from pixelstage.config import Settings

logger = logging.getLogger(__name__)

_QUALITY_FORMATS = {"JPEG", "WEBP"}

# Pillow plugins signal corrupt or truncated data with any of these.
_DECODE_ERRORS = (
    OSError,
    ValueError,
    KeyError,
    SyntaxError,
    EOFError,
    struct.error,
    zlib.error,
    Image.DecompressionBombError,
)


@dataclass(frozen=True)
class TransformSpec:
    """Fully resolved transform parameters."""

    brightness: float = 1.0
    contrast: float = 1.0
    saturation: float = 1.0
    rotation: float = 0.0
    output_format: OutputFormat = field(default_factory=lambda: FORMAT_REGISTRY[DEFAULT_FORMAT])


class ImageProcessor(Protocol):
    """Protocol for the image-processing collaborator."""

    def process(self, source: BinaryIO, spec: TransformSpec) -> bytes:
        """Decode ``source``, apply ``spec``, and return the encoded result.

        Args:
            source: Binary stream positioned at the start of an image file.
            spec: Resolved transform parameters.

        Returns:
            The encoded output image.

        Raises:
            ProcessingFailed: If the input cannot be decoded or the output
                cannot be encoded.
        """
        ...


class PillowProcessor:
    """Pillow-backed :class:`ImageProcessor`."""

    def __init__(self, settings: Settings) -> None:
        self._max_pixels = settings.max_image_pixels
        self._quality = settings.jpeg_quality

    def process(self, source: BinaryIO, spec: TransformSpec) -> bytes:
        try:
            with Image.open(source) as image:
                if image.width * image.height > self._max_pixels:
                    raise ProcessingFailed(
                        f"Image of {image.width}x{image.height} exceeds the {self._max_pixels} pixel limit."
                    )
                image.load()
                return self._encode(self._apply(image, spec), spec.output_format)
        except ProcessingFailed:
            raise
        except _DECODE_ERRORS as exc:
            logger.exception("Image processing failed")
            raise ProcessingFailed from exc

    # -- Internal -----------------------------------------------------------

    @staticmethod
    def _apply(image: Image.Image, spec: TransformSpec) -> Image.Image:
        image = _normalize_mode(image)

        if spec.rotation % 360:
            # Pillow rotates counter-clockwise; positive degrees mean clockwise.
            image = image.rotate(-spec.rotation, expand=True)

        enhancements = (
            (ImageEnhance.Brightness, spec.brightness),
            (ImageEnhance.Contrast, spec.contrast),
            (ImageEnhance.Color, spec.saturation),
        )
        for enhancer, factor in enhancements:
            if factor != 1.0:
                image = enhancer(image).enhance(factor)
        return image

    def _encode(self, image: Image.Image, output_format: OutputFormat) -> bytes:
        if not output_format.supports_alpha and image.mode not in ("RGB", "L"):
            image = image.convert("RGB")

        params: dict[str, object] = {}
        if output_format.pillow_format in _QUALITY_FORMATS:
            params["quality"] = self._quality

        buffer = io.BytesIO()
        image.save(buffer, format=output_format.pillow_format, **params)
        return buffer.getvalue()


def _normalize_mode(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "RGBA", "L"):
        return image
    if image.mode == "LA" or (image.mode == "P" and "transparency" in image.info):
        return image.convert("RGBA")
    return image.convert("RGB")
