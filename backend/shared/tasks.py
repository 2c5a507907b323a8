"""
Periodic background tasks.

Services that need housekeeping (rate limiter sweep, auth log cleanup)
own a PeriodicTask and expose start/stop so the application lifespan
controls when it runs. Tests call the housekeeping method directly.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Runs a synchronous callback every `interval` seconds on the event loop.

    The callback must be quick and non-blocking; it runs inline on the loop.
    """

    def __init__(self, name: str, interval: float, callback: Callable[[], object]):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self._callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop. Idempotent."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=self.name
        )

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self._callback()
            except Exception:
                # The next tick retries.
                logger.exception("Periodic task %s failed", self.name)
