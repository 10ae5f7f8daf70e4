"""Shared fixtures: settings and a staging store rooted in a temporary directory."""

from __future__ import annotations

import io
import struct
import zlib
from typing import TYPE_CHECKING

import pytest
from PIL import Image

from pixelstage.config import Settings
from pixelstage.staging.store import StagingStore

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(staging_dir=tmp_path / "uploads", max_file_size=1_048_576)


@pytest.fixture()
def store(settings: Settings) -> StagingStore:
    return StagingStore(settings.staging_dir)


@pytest.fixture()
def png_bytes() -> bytes:
    """A 4x2 solid-colour RGB PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (4, 2), (200, 100, 50)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def jpeg_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), (30, 120, 210)).save(buffer, format="JPEG")
    return buffer.getvalue()


def _png_chunk(chunk_type: bytes, body: bytes) -> bytes:
    crc = zlib.crc32(chunk_type + body) & 0xFFFFFFFF
    return struct.pack(">I", len(body)) + chunk_type + body + struct.pack(">I", crc)


@pytest.fixture()
def broken_png_bytes() -> bytes:
    """A 64x64 PNG whose image data is split in two, the second chunk's type garbled.

    The header parses, so the file opens; decoding fails part-way through.
    """
    buffer = io.BytesIO()
    Image.frombytes("RGB", (64, 64), bytes(range(256)) * 48).save(buffer, format="PNG")
    data = buffer.getvalue()

    parts = [data[:8]]
    pos = 8
    while pos < len(data):
        (length,) = struct.unpack(">I", data[pos : pos + 4])
        chunk_type = data[pos + 4 : pos + 8]
        body = data[pos + 8 : pos + 8 + length]
        pos += 12 + length
        if chunk_type == b"IDAT":
            half = len(body) // 2
            parts.append(_png_chunk(b"IDAT", body[:half]))
            parts.append(_png_chunk(b"\x00\x01\x02\x03", body[half:]))
        else:
            parts.append(_png_chunk(chunk_type, body))
    return b"".join(parts)
