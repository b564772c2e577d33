import asyncio
from collections.abc import Callable
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Hold the latest pushed value for ``delay`` seconds of quiet, then hand it to ``callback``.

    Every push restarts the timer, so a burst of pushes produces one callback
    with the last value.
    """

    def __init__(self, delay: float, callback: Callable[[T], Any]):
        self.delay = delay
        self._callback = callback
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    def push(self, value: T) -> None:
        self.cancel()
        self._task = asyncio.create_task(self._fire(value))

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _fire(self, value: T) -> None:
        await asyncio.sleep(self.delay)
        self._task = None
        self._callback(value)
