import asyncio
from typing import Optional

from constants import SWEEP_INTERVAL_SECONDS
from lifecycle import LifecycleManager
from logging_config import get_logger

logger = get_logger(__name__)


class SweepScheduler:
    """Runs LifecycleManager.evaluate_expiry on a fixed interval.

    Each tick is started as its own task; a tick that comes due while the
    previous sweep is still running is skipped.
    """

    def __init__(self, manager: LifecycleManager, interval: float = SWEEP_INTERVAL_SECONDS):
        self.manager = manager
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self._sweep_task: Optional[asyncio.Task] = None
        self.skipped_ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            logger.debug("Sweep scheduler already running")
            return
        self._task = asyncio.create_task(self._run(), name="privatevoice.sweep")
        logger.info(f"Sweep scheduler started with interval {self.interval}s")

    async def stop(self) -> None:
        """Stop ticking; a sweep already in flight is left to finish on its own."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Sweep scheduler stopped")

    async def _run(self):
        try:
            while True:
                await asyncio.sleep(self.interval)
                self.tick()
        except asyncio.CancelledError:
            logger.debug("Sweep loop cancelled")
            raise

    def tick(self) -> Optional[asyncio.Task]:
        """Start one sweep unless the previous one is still running."""
        if self._sweep_task is not None and not self._sweep_task.done():
            self.skipped_ticks += 1
            logger.warning("Previous sweep still running, skipping this tick")
            return None
        self._sweep_task = asyncio.create_task(self.sweep(), name="privatevoice.sweep.tick")
        return self._sweep_task

    async def sweep(self) -> int:
        try:
            deleted = await self.manager.evaluate_expiry()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Sweep failed: {e}", exc_info=True)
            return 0
        if deleted:
            logger.info(f"Sweep deleted {deleted} expired voice channels")
        return deleted
