"""
Periodic background jobs (session GC, signing-key rotation).

Each job runs on its own asyncio task and timer. A failing run is logged and
the loop carries on; a job never holds a session lock between runs.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    def __init__(self, name: str, interval_seconds: float, job: Callable[[], Awaitable[None]]):
        self.name = name
        self.interval_seconds = interval_seconds
        self.job = job
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.interval_seconds <= 0 or self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.info(f"Started background task '{self.name}' every {self.interval_seconds}s")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def run_once(self) -> None:
        try:
            await self.job()
        except Exception as e:
            logger.warning(f"Background task '{self.name}' failed: {e}")

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()
