"""Transform stage: turn one staged image into a new staged image."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pixelstage.errors import InvalidParameter, MissingInput, NotFound, ProcessingFailed
from pixelstage.imaging.formats import lookup_format
from pixelstage.imaging.processor import TransformSpec
from pixelstage.pipeline.references import strip_public_prefix

if TYPE_CHECKING:
    from pixelstage.imaging.processor import ImageProcessor
    from pixelstage.staging.identity import IdentityMinter
    from pixelstage.staging.store import StagingStore

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Image processed successfully."

DEFAULT_BRIGHTNESS: float = 1.0
DEFAULT_CONTRAST: float = 1.0
DEFAULT_SATURATION: float = 1.0
DEFAULT_ROTATION: float = 0.0


@dataclass(frozen=True)
class TransformRequest:
    """Client-supplied transform parameters; ``None`` means not supplied."""

    reference: str | None
    brightness: float | None = None
    contrast: float | None = None
    saturation: float | None = None
    rotation: float | None = None
    output_format: str | None = None


@dataclass(frozen=True)
class TransformResult:
    message: str
    identity: str


def build_spec(request: TransformRequest) -> TransformSpec:
    """Fill in defaults for absent parameters and validate the rest.

    Only absent values are defaulted: an explicit ``0`` brightness is kept.

    Raises:
        InvalidParameter: For negative or non-finite factors, a non-finite
            rotation, or an unknown output format.
    """
    factors = {
        "brightness": _present_or(request.brightness, DEFAULT_BRIGHTNESS),
        "contrast": _present_or(request.contrast, DEFAULT_CONTRAST),
        "saturation": _present_or(request.saturation, DEFAULT_SATURATION),
    }
    for name, value in factors.items():
        if not math.isfinite(value) or value < 0:
            raise InvalidParameter(f"{name} must be a non-negative number.")

    rotation = _present_or(request.rotation, DEFAULT_ROTATION)
    if not math.isfinite(rotation):
        raise InvalidParameter("rotation must be a finite number of degrees.")

    return TransformSpec(
        brightness=factors["brightness"],
        contrast=factors["contrast"],
        saturation=factors["saturation"],
        rotation=rotation,
        output_format=lookup_format(request.output_format),
    )


class TransformStage:
    """Reads a staged image, processes it, and stages the result."""

    def __init__(self, store: StagingStore, minter: IdentityMinter, processor: ImageProcessor) -> None:
        self._store = store
        self._minter = minter
        self._processor = processor

    def run(self, request: TransformRequest) -> TransformResult:
        """Process the referenced staged file.

        The output is encoded fully in memory before it is staged, so a
        failure never leaves an output file behind.

        Raises:
            MissingInput: If no file reference was supplied.
            InvalidIdentity: If the reference escapes the staging directory.
            NotFound: If the referenced file does not exist.
            InvalidParameter: If a transform parameter is invalid.
            ProcessingFailed: If decoding, encoding, or staging the output fails.
        """
        if not request.reference:
            raise MissingInput

        identity = strip_public_prefix(request.reference)
        source_path = self._store.resolve(identity)
        logger.info("Resolved image path: %s", source_path)
        if not self._store.exists(identity):
            logger.warning("File not found at: %s", source_path)
            raise NotFound
        spec = build_spec(request)

        with self._store.open_for_read(identity) as source:
            output = self._processor.process(source, spec)

        output_identity = self._minter.mint(spec.output_format.extension)
        try:
            self._store.create(output_identity, output)
        except OSError as exc:
            logger.exception("Could not stage processed image %s", output_identity)
            raise ProcessingFailed from exc

        logger.info("Processed %s into %s", identity, output_identity)
        return TransformResult(message=SUCCESS_MESSAGE, identity=output_identity)


def _present_or(value: float | None, default: float) -> float:
    return default if value is None else float(value)
