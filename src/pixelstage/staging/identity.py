"""Identity minting for staged files."""

from __future__ import annotations

import secrets
import threading
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

TOKEN_BYTES: int = 4


class IdentityMinter:
    """Mints ``<millis>-<sequence>-<token>.<extension>`` names for new staged files.

    The millisecond component never decreases, even if the wall clock steps
    backwards. The sequence restarts at 0 each millisecond and counts up
    within it, so one minter never repeats a name. The random token keeps
    names from separate processes sharing a directory apart.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._last_millis: int = 0
        self._sequence: int = 0

    def mint(self, extension: str) -> str:
        """Return a fresh identity ending in ``.<extension>``."""
        with self._lock:
            millis = int(self._clock() * 1000)
            if millis > self._last_millis:
                self._last_millis = millis
                self._sequence = 0
            else:
                millis = self._last_millis
                self._sequence += 1
            sequence = self._sequence
        token = secrets.token_hex(TOKEN_BYTES)
        return f"{millis}-{sequence}-{token}.{extension}"
