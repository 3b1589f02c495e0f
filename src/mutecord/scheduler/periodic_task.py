"""Fixed-interval runner for the spam gate maintenance sweeps.

Each :class:`PeriodicTask` owns one asyncio task that sleeps for ``interval``
seconds and then calls a synchronous callback, forever, until shut down. A
failing callback is logged and the loop keeps going.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from mutecord.util.logger import get_logger

logger = get_logger("periodic_task")


class PeriodicTask:
    """
    Run ``callback`` every ``interval`` seconds on the running event loop.

    Args:
        name: Human-readable name for logging (e.g., "rate-reset").
        callback: Synchronous callable invoked once per tick.
        interval: Seconds between ticks. The first tick happens one interval after start.
    """

    def __init__(self, name: str, callback: Callable[[], Any], interval: float) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._name = name
        self._callback = callback
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> Any:
        """Invoke the callback immediately, logging instead of raising on failure."""
        try:
            return self._callback()
        except Exception as exc:
            logger.error("[%s] Periodic callback failed: %s", self._name, exc)
            return None

    async def _run_loop(self) -> None:
        logger.info("[%s] Starting periodic task (interval=%.1fs)", self._name, self._interval)
        try:
            while True:
                await asyncio.sleep(self._interval)
                self.run_once()
        except asyncio.CancelledError:
            logger.info("[%s] Periodic task cancelled", self._name)
            raise

    def start(self) -> None:
        """Start the background task if not already running."""
        if self.is_running:
            logger.warning("[%s] Periodic task already running", self._name)
            return
        self._task = asyncio.create_task(self._run_loop())

    async def shutdown(self) -> None:
        """Cancel the background task and wait for it to finish."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("[%s] Periodic task shutdown complete", self._name)
