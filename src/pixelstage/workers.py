"""Bounded execution of image transforms.

Transforms are CPU-bound Pillow work, so they run on a dedicated thread pool
with one slot per worker. A request that cannot get a slot within
``Settings.queue_timeout`` fails with :class:`ServiceBusy` (503).
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from pixelstage.errors import ServiceBusy

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from pixelstage.config import Settings
    from pixelstage.pipeline.transform import TransformRequest, TransformResult, TransformStage

logger = logging.getLogger(__name__)


class WorkerPool:
    """Runs :meth:`TransformStage.run` calls, at most ``max_concurrent`` at a time."""

    def __init__(self, settings: Settings) -> None:
        self._slots = asyncio.Semaphore(settings.max_concurrent)
        self._queue_timeout = settings.queue_timeout
        self._executor = ThreadPoolExecutor(
            max_workers=settings.max_concurrent,
            thread_name_prefix="pixelstage-transform",
        )
        self._waiting: int = 0
        self._running: int = 0
        self._stats_lock = threading.Lock()

    async def transform(self, stage: TransformStage, request: TransformRequest) -> TransformResult:
        """Run ``stage.run(request)`` on the pool once a slot is free.

        Raises:
            ServiceBusy: If no slot frees up within the queue timeout.
        """
        async with self._slot():
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, stage.run, request)

    @property
    def active_count(self) -> int:
        """Number of transforms currently running."""
        with self._stats_lock:
            return self._running

    @property
    def queue_depth(self) -> int:
        """Number of requests waiting for a slot."""
        with self._stats_lock:
            return self._waiting

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    # -- Internal -----------------------------------------------------------

    @asynccontextmanager
    async def _slot(self) -> AsyncIterator[None]:
        self._track(waiting=1)
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self._queue_timeout)
        except TimeoutError:
            logger.warning("No transform slot free after %.2fs", self._queue_timeout)
            raise ServiceBusy from None
        finally:
            self._track(waiting=-1)

        self._track(running=1)
        try:
            yield
        finally:
            self._slots.release()
            self._track(running=-1)

    def _track(self, waiting: int = 0, running: int = 0) -> None:
        with self._stats_lock:
            self._waiting += waiting
            self._running += running
