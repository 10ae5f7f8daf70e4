"""Tests for the staging store and identity minting."""

from __future__ import annotations

import io
import re
from pathlib import Path
from unittest.mock import patch

import pytest

from pixelstage.errors import IdentityCollision, InvalidIdentity, NotFound, PayloadTooLarge
from pixelstage.staging.identity import IdentityMinter
from pixelstage.staging.store import StagingStore

# ---------------------------------------------------------------------------
# StagingStore.resolve
# ---------------------------------------------------------------------------


class TestResolve:
    def test_plain_name_resolves_inside_root(self, store: StagingStore) -> None:
        assert store.resolve("123-abc.png") == store.root / "123-abc.png"

    @pytest.mark.parametrize(
        "identity",
        [
            "",
            ".",
            "..",
            "../secret.txt",
            "../../etc/passwd",
            "sub/file.png",
            "..\\windows.ini",
            "/etc/passwd",
            "name\x00.png",
        ],
    )
    def test_rejects_escaping_or_nested_names(self, store: StagingStore, identity: str) -> None:
        with pytest.raises(InvalidIdentity):
            store.resolve(identity)

    def test_rejects_symlink_pointing_outside_root(self, store: StagingStore, tmp_path: Path) -> None:
        outside = tmp_path / "outside.png"
        outside.write_bytes(b"secret")
        (store.root / "link.png").symlink_to(outside)

        with pytest.raises(InvalidIdentity):
            store.resolve("link.png")

    def test_root_created_when_missing(self, tmp_path: Path) -> None:
        root = tmp_path / "a" / "b"
        StagingStore(root)
        assert root.is_dir()


# ---------------------------------------------------------------------------
# StagingStore create / read
# ---------------------------------------------------------------------------


class TestCreateAndRead:
    def test_create_from_bytes(self, store: StagingStore) -> None:
        store.create("1-a.png", b"payload")

        assert store.exists("1-a.png")
        with store.open_for_read("1-a.png") as stream:
            assert stream.read() == b"payload"
        assert store.size("1-a.png") == 7

    def test_create_from_stream(self, store: StagingStore) -> None:
        store.create("1-b.png", io.BytesIO(b"x" * 200_000))
        assert store.size("1-b.png") == 200_000

    def test_no_temporary_files_left_behind(self, store: StagingStore) -> None:
        store.create("1-c.png", b"payload")
        assert [p.name for p in store.root.iterdir()] == ["1-c.png"]

    def test_refuses_to_overwrite(self, store: StagingStore) -> None:
        store.create("1-d.png", b"first")

        with pytest.raises(IdentityCollision):
            store.create("1-d.png", b"second")

        with store.open_for_read("1-d.png") as stream:
            assert stream.read() == b"first"

    def test_name_taken_while_writing_is_not_overwritten(self, store: StagingStore) -> None:
        target = store.root / "1-r.png"

        class _RacingSource(io.BytesIO):
            def read(self, size: int | None = -1) -> bytes:
                if not target.exists():
                    target.write_bytes(b"winner")
                return super().read(size)

        with pytest.raises(IdentityCollision):
            store.create("1-r.png", _RacingSource(b"loser"), max_bytes=1024)

        assert target.read_bytes() == b"winner"
        assert [p.name for p in store.root.iterdir()] == ["1-r.png"]

    def test_create_rejects_traversal(self, store: StagingStore) -> None:
        with pytest.raises(InvalidIdentity):
            store.create("../escape.png", b"payload")
        assert not (store.root.parent / "escape.png").exists()

    @pytest.mark.parametrize("source", [b"y" * 101, io.BytesIO(b"y" * 101)])
    def test_size_limit_leaves_nothing(self, store: StagingStore, source: object) -> None:
        with pytest.raises(PayloadTooLarge):
            store.create("1-e.png", source, max_bytes=100)  # type: ignore[arg-type]
        assert list(store.root.iterdir()) == []

    def test_open_missing_raises_not_found(self, store: StagingStore) -> None:
        with pytest.raises(NotFound):
            store.open_for_read("doesnotexist.jpeg")

    def test_exists_false_for_invalid_identity(self, store: StagingStore) -> None:
        assert store.exists("../anything") is False
        assert store.exists("missing.png") is False


# ---------------------------------------------------------------------------
# IdentityMinter
# ---------------------------------------------------------------------------


class TestIdentityMinter:
    def test_identity_shape(self) -> None:
        minter = IdentityMinter(clock=lambda: 1_700_000_000.5)
        identity = minter.mint("png")
        assert re.fullmatch(r"1700000000500-0-[0-9a-f]{8}\.png", identity)

    def test_same_millisecond_gives_distinct_identities(self) -> None:
        minter = IdentityMinter(clock=lambda: 1_700_000_000.0)
        identities = {minter.mint("jpeg") for _ in range(100)}
        assert len(identities) == 100

    def test_timestamp_never_decreases(self) -> None:
        times = iter([2.0, 1.0, 3.0])
        minter = IdentityMinter(clock=lambda: next(times))

        stamps = [int(minter.mint("png").split("-")[0]) for _ in range(3)]

        assert stamps == [2000, 2000, 3000]

    def test_sequence_keeps_same_millisecond_apart_without_randomness(self) -> None:
        minter = IdentityMinter(clock=lambda: 1_700_000_000.0)
        with patch("pixelstage.staging.identity.secrets.token_hex", return_value="00000000"):
            identities = [minter.mint("png") for _ in range(3)]

        assert identities == [
            "1700000000000-0-00000000.png",
            "1700000000000-1-00000000.png",
            "1700000000000-2-00000000.png",
        ]

    def test_sequence_restarts_each_millisecond(self) -> None:
        times = iter([1.0, 1.0, 1.5])
        minter = IdentityMinter(clock=lambda: next(times))

        sequences = [minter.mint("png").split("-")[1] for _ in range(3)]

        assert sequences == ["0", "1", "0"]
