"""Staging store: a flat directory of files addressed by identity.

All path handling goes through :meth:`StagingStore.resolve`, which refuses
any identity that is not a single file name directly inside the root.
Files are written to a hidden temporary name and hard-linked into place once
complete, so readers never observe a partially written staged file.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from pixelstage.errors import IdentityCollision, InvalidIdentity, NotFound, PayloadTooLarge

if TYPE_CHECKING:
    from typing import BinaryIO

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE: int = 64 * 1024
_TEMP_PREFIX = ".staging-"
_TEMP_SUFFIX = ".part"


class StagingStore:
    """Creates, checks, and opens staged files under a single root directory."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    # -- Public API ---------------------------------------------------------

    def resolve(self, identity: str) -> Path:
        """Return the absolute path for ``identity``.

        Raises:
            InvalidIdentity: If the identity is empty, contains a separator or
                NUL byte, is a dot segment, or resolves outside the root.
        """
        if (
            not identity
            or identity in {".", ".."}
            or "/" in identity
            or "\\" in identity
            or "\x00" in identity
            or os.path.isabs(identity)
        ):
            logger.warning("Rejected staged file reference %r", identity)
            raise InvalidIdentity

        path = (self._root / identity).resolve()
        if path.parent != self._root:
            logger.warning("Reference %r escapes the staging root", identity)
            raise InvalidIdentity
        return path

    def exists(self, identity: str) -> bool:
        try:
            return self.resolve(identity).is_file()
        except InvalidIdentity:
            return False

    def create(self, identity: str, source: bytes | BinaryIO, max_bytes: int | None = None) -> None:
        """Write ``source`` under ``identity``, refusing to replace an existing file.

        Raises:
            InvalidIdentity: If the identity fails :meth:`resolve`.
            IdentityCollision: If a file with this identity already exists.
            PayloadTooLarge: If more than ``max_bytes`` bytes are supplied.
        """
        target = self.resolve(identity)
        if target.exists():
            raise IdentityCollision

        fd, temp_name = tempfile.mkstemp(dir=self._root, prefix=_TEMP_PREFIX, suffix=_TEMP_SUFFIX)
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as out:
                if isinstance(source, bytes):
                    if max_bytes is not None and len(source) > max_bytes:
                        raise PayloadTooLarge
                    out.write(source)
                else:
                    _copy_limited(source, out, max_bytes)
            try:
                # Fails rather than replacing an existing staged file.
                os.link(temp_path, target)
            except FileExistsError:
                raise IdentityCollision from None
        finally:
            temp_path.unlink(missing_ok=True)

        logger.info("Staged %s", identity)

    def open_for_read(self, identity: str) -> BinaryIO:
        """Open a staged file for binary reading.

        Raises:
            InvalidIdentity: If the identity fails :meth:`resolve`.
            NotFound: If no such staged file exists.
        """
        path = self.resolve(identity)
        try:
            return path.open("rb")
        except (FileNotFoundError, IsADirectoryError):
            raise NotFound from None

    def size(self, identity: str) -> int:
        path = self.resolve(identity)
        try:
            return path.stat().st_size
        except FileNotFoundError:
            raise NotFound from None


def _copy_limited(source: BinaryIO, out: BinaryIO, max_bytes: int | None) -> None:
    if max_bytes is None:
        shutil.copyfileobj(source, out, COPY_CHUNK_SIZE)
        return

    written = 0
    while True:
        chunk = source.read(COPY_CHUNK_SIZE)
        if not chunk:
            break
        written += len(chunk)
        if written > max_bytes:
            raise PayloadTooLarge
        out.write(chunk)
