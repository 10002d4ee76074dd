"""
Periodic expiry sweep for session backends without native TTL support.

The sweeper runs as an asyncio task next to the application and calls the
handler's ``gc`` on a fixed interval. ``gc`` is synchronous, so each sweep
runs in the default executor to keep the event loop free.
"""

import asyncio
import logging
from typing import Optional

from session.store import SessionHandler

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """
    Background task that physically removes expired sessions.

    Attributes:
        handler: The session handler to sweep.
        max_lifetime_seconds: Inactivity after which a session is removed.
        interval_seconds: Delay between two sweeps.
    """

    def __init__(
        self,
        handler: SessionHandler,
        max_lifetime_seconds: int,
        interval_seconds: float = 60.0
    ):
        self.handler = handler
        self.max_lifetime_seconds = max_lifetime_seconds
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop on the running event loop. No-op if already running."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Session expiry sweeper started", extra={"extra_data": {
            "interval_seconds": self.interval_seconds,
            "max_lifetime_seconds": self.max_lifetime_seconds,
        }})

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Session expiry sweeper stopped")

    async def sweep_once(self) -> None:
        """Run a single sweep in the default executor."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.handler.gc, self.max_lifetime_seconds)

    async def _run(self) -> None:
        while True:
            try:
                await self.sweep_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # A failed sweep is retried on the next tick
                logger.error(
                    "Session expiry sweep failed",
                    extra={"extra_data": {"error": str(e)}},
                    exc_info=True,
                )
            await asyncio.sleep(self.interval_seconds)
