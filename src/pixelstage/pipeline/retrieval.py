"""Retrieval stage: stream a staged file back to the client."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pixelstage.errors import MissingInput, NotFound, StreamFailure
from pixelstage.imaging.formats import lookup_format
from pixelstage.pipeline.references import final_component

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import BinaryIO

    from pixelstage.imaging.formats import OutputFormat
    from pixelstage.staging.store import StagingStore

logger = logging.getLogger(__name__)

CHUNK_SIZE: int = 64 * 1024


@dataclass(frozen=True)
class RetrievalRequest:
    reference: str | None
    output_format: str | None = None


@dataclass
class Download:
    """An opened staged file plus the metadata to send with it.

    The content type is taken from the requested format, not sniffed from
    the bytes.
    """

    identity: str
    stream: BinaryIO
    size: int
    output_format: OutputFormat

    @property
    def media_type(self) -> str:
        return self.output_format.media_type

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Disposition": f"attachment; filename=processed.{self.output_format.extension}",
            "Content-Length": str(self.size),
        }

    def iter_chunks(self) -> Iterator[bytes]:
        """Yield the file in chunks, closing it however iteration ends.

        Raises:
            StreamFailure: If reading fails part-way through.
        """
        try:
            while True:
                try:
                    chunk = self.stream.read(CHUNK_SIZE)
                except OSError as exc:
                    logger.exception("Error reading file stream for %s", self.identity)
                    raise StreamFailure from exc
                if not chunk:
                    break
                yield chunk
            logger.info("File stream for %s ended successfully", self.identity)
        finally:
            self.close()

    def close(self) -> None:
        self.stream.close()


class RetrievalStage:
    """Opens staged files for download."""

    def __init__(self, store: StagingStore) -> None:
        self._store = store

    def open(self, request: RetrievalRequest) -> Download:
        """Open the referenced staged file.

        Only the final path component of the reference is used.

        Raises:
            MissingInput: If no file reference was supplied.
            InvalidIdentity: If the remaining name is not a valid identity.
            NotFound: If the referenced file does not exist.
            InvalidParameter: If the requested format is unknown.
            StreamFailure: If the file exists but cannot be opened.
        """
        if not request.reference:
            raise MissingInput

        identity = final_component(request.reference)
        path = self._store.resolve(identity)
        if not self._store.exists(identity):
            logger.warning("File not found at: %s", path)
            raise NotFound
        output_format = lookup_format(request.output_format)

        try:
            size = self._store.size(identity)
            stream = self._store.open_for_read(identity)
        except OSError as exc:
            logger.exception("Could not open %s for download", identity)
            raise StreamFailure from exc

        logger.info("Sanitized file path: %s", path)
        return Download(identity=identity, stream=stream, size=size, output_format=output_format)
