"""Background task that prunes expired tokens on a fixed cadence.

Runs independently of request traffic so the store stays bounded even when no
one presents a stale token again.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Iterable

from loguru import logger

from .token_store import TokenStore

DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60


class TokenSweeper:
    """Owns the recurring sweep task for a TokenStore.

    `extra_pruners` are zero-argument callables run on the same tick (e.g.
    rate limiter housekeeping). A failing pruner is logged and the loop keeps
    running.
    """

    def __init__(
        self,
        store: TokenStore,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        extra_pruners: Iterable[Callable[[], None]] = (),
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.store = store
        self.interval_seconds = interval_seconds
        self._extra_pruners = list(extra_pruners)
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> None:
        """Run one sweep pass immediately."""
        self.store.sweep()
        for prune in self._extra_pruners:
            prune()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.tick()
            except Exception as e:
                logger.exception(f"Token sweep failed: {e}")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="token-sweeper")
        logger.info(f"Token sweeper started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Token sweeper stopped")

    async def __aenter__(self) -> TokenSweeper:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
