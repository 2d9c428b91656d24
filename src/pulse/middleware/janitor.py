"""Background sweeping of rate limiter stores, and their lifecycle registry."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pulse.middleware.rate_limiter import SlidingWindowRateLimiter

logger = logging.getLogger("pulse")


class WindowJanitor:
    """Runs ``sweep`` every ``interval`` seconds on the running event loop.

    Args:
        sweep: Callable pruning a store; returns the number of identifiers removed.
        interval: Seconds between sweeps.
        name: Label used in task names and log lines.
    """

    def __init__(self, sweep: Callable[[], int], interval: float, name: str = "limiter") -> None:
        self._sweep = sweep
        self.interval = interval
        self.name = name
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop. Must be called from within a running loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"window-janitor-{self.name}"
        )

    def cancel(self) -> None:
        """Stop the sweep loop. Safe to call repeatedly."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def aclose(self) -> None:
        """Cancel the sweep loop and wait for the task to finish unwinding."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                removed = self._sweep()
            except Exception:
                logger.exception("Window sweep failed for %s", self.name)
                continue
            if removed:
                logger.debug("Janitor %s evicted %d idle identifiers", self.name, removed)


class LimiterRegistry:
    """The application's list of active limiters, for mass start and teardown."""

    def __init__(self) -> None:
        self._limiters: list[SlidingWindowRateLimiter] = []

    def __iter__(self):
        return iter(self._limiters)

    def __len__(self) -> int:
        return len(self._limiters)

    def register(self, limiter: SlidingWindowRateLimiter) -> SlidingWindowRateLimiter:
        if limiter not in self._limiters:
            self._limiters.append(limiter)
        return limiter

    def start_all(self) -> None:
        for limiter in self._limiters:
            limiter.janitor.start()

    def shutdown(self) -> None:
        """Close every registered limiter, cancelling its janitor and discarding its store."""
        for limiter in self._limiters:
            limiter.close()
        logger.info("Stopped %d rate limiter janitor(s)", len(self._limiters))

    async def aclose(self) -> None:
        """Await every janitor's cancellation, then close the limiters."""
        for limiter in self._limiters:
            await limiter.janitor.aclose()
        self.shutdown()
