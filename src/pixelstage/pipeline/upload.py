"""Upload stage: validate the declared media type and stage the payload."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pixelstage.errors import NoFilePresent, UnsupportedMediaType

if TYPE_CHECKING:
    from typing import BinaryIO

    from pixelstage.staging.identity import IdentityMinter
    from pixelstage.staging.store import StagingStore

logger = logging.getLogger(__name__)

SUPPORTED_MEDIA_TYPES: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpeg",
}


@dataclass(frozen=True)
class MediaCheck:
    """Outcome of the media type gate."""

    accepted: bool
    extension: str | None = None
    reason: str | None = None


def check_media_type(content_type: str | None) -> MediaCheck:
    """Accept exactly the supported image media types; no I/O."""
    extension = SUPPORTED_MEDIA_TYPES.get(content_type or "")
    if extension is None:
        return MediaCheck(accepted=False, reason=f"Unsupported media type: {content_type!r}")
    return MediaCheck(accepted=True, extension=extension)


@dataclass(frozen=True)
class UploadResult:
    identity: str
    original_filename: str | None


class UploadStage:
    """Stages client uploads under freshly minted identities.

    The client's filename is kept only as display metadata; the storage
    identity is built from a timestamp, a random token, and the extension
    implied by the validated media type.
    """

    def __init__(self, store: StagingStore, minter: IdentityMinter, max_bytes: int) -> None:
        self._store = store
        self._minter = minter
        self._max_bytes = max_bytes

    def accept(self, payload: BinaryIO | None, content_type: str | None, filename: str | None) -> UploadResult:
        """Validate and persist one uploaded file.

        Raises:
            NoFilePresent: If no file part was supplied.
            UnsupportedMediaType: If the declared type is not PNG or JPEG.
            PayloadTooLarge: If the payload exceeds the configured size limit.
        """
        if payload is None:
            logger.warning("Upload without a file part")
            raise NoFilePresent

        check = check_media_type(content_type)
        logger.info("Received file type: %s", content_type)
        if not check.accepted or check.extension is None:
            logger.warning("%s", check.reason)
            raise UnsupportedMediaType

        identity = self._minter.mint(check.extension)
        self._store.create(identity, payload, max_bytes=self._max_bytes)
        logger.info("Uploaded %r as %s", filename, identity)
        return UploadResult(identity=identity, original_filename=filename)
