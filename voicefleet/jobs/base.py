"""
Base class for periodic background jobs.
"""

import asyncio
from abc import ABC, abstractmethod

from voicefleet.utils.logger import logger


class PeriodicJob(ABC):
    """
    A job that runs on a fixed interval.

    A run that is still in progress when the next one is due is not
    overlapped; the second call returns immediately.
    """

    name: str = "Job"

    def __init__(self, interval_seconds: float):
        self.interval_seconds = interval_seconds
        self._running = False

    @abstractmethod
    async def run_once(self) -> None:
        pass

    async def tick(self) -> bool:
        """
        Run the job once unless a run is already in progress.

        Errors are logged and swallowed so the loop keeps going.

        Returns:
            bool: True if the job ran
        """
        if self._running:
            logger.info(f"[{self.name}] Already running, skipping")
            return False

        self._running = True
        try:
            await self.run_once()
        except Exception as e:
            logger.error(f"[{self.name}] Run failed", error=str(e), exc_info=True)
        finally:
            self._running = False
        return True

    async def run_forever(self, stop_event: asyncio.Event | None = None) -> None:
        """Run immediately, then every interval until stop_event is set."""
        stop_event = stop_event or asyncio.Event()
        logger.info(
            f"[{self.name}] Job started", interval_seconds=self.interval_seconds
        )
        while not stop_event.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info(f"[{self.name}] Job stopped")
