"""Asyncio timers used by the practice sessions."""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

Callback = Callable[[], Union[None, Awaitable[None]]]


async def _call(callback: Callback) -> None:
    result = callback()
    if asyncio.iscoroutine(result):
        await result


class RepeatingTimer:
    """Calls ``callback`` every ``interval`` seconds until stopped."""

    def __init__(self, callback: Callback, interval: float = 1.0):
        self.callback = callback
        self.interval = interval
        self.task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()

    def start(self) -> None:
        """Start ticking; restarting replaces the previous task."""
        self.stop()
        self.task = asyncio.create_task(self._run())

    def stop(self) -> None:
        if self.task is not None:
            self.task.cancel()
            self.task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await _call(self.callback)


class OneShotTimer:
    """Calls ``callback`` once after ``delay`` seconds unless cancelled."""

    def __init__(self):
        self.task: Optional[asyncio.Task] = None

    def schedule(self, delay: float, callback: Callback) -> None:
        self.cancel()
        self.task = asyncio.create_task(self._run(delay, callback))

    def cancel(self) -> None:
        if self.task is not None:
            self.task.cancel()
            self.task = None

    async def _run(self, delay: float, callback: Callback) -> None:
        await asyncio.sleep(delay)
        self.task = None
        await _call(callback)
