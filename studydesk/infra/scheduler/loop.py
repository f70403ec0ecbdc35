# studydesk/infra/scheduler/loop.py
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

TickFn = Callable[[], Awaitable[None]]


class RepeatingTask:
    """
    Runs `fn` every `interval_seconds` on the running event loop.

    - start() while running restarts: there is never more than one loop
    - the first run happens right away unless run_immediately=False
    - a failing run is logged and the loop keeps going
    """

    def __init__(self, fn: TickFn, interval_seconds: float, name: str, run_immediately: bool = True) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._fn = fn
        self._interval = interval_seconds
        self._name = name
        self._run_immediately = run_immediately
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self.stop()
        self._task = asyncio.get_running_loop().create_task(self._run_forever(), name=self._name)
        logger.info("Repeating task %s started (every %ss)", self._name, self._interval)

    def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.info("Repeating task %s stopped", self._name)

    async def aclose(self) -> None:
        """stop() and wait until the cancelled run has actually finished."""
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run_forever(self) -> None:
        if self._run_immediately:
            await self._tick()
        while True:
            await asyncio.sleep(self._interval)
            await self._tick()

    async def _tick(self) -> None:
        try:
            await self._fn()
        except Exception as e:
            # never crash the app because of a background job, but log errors
            logger.error(f"Repeating task {self._name} failed: {e}", exc_info=True)
