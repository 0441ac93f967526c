import asyncio
from typing import Any, Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Coalesces bursts of calls into one callback after a quiet period.

    Every call restarts the timer and replaces the pending value; when the
    timer runs out the callback receives the last value. Only the timer is
    ever cancelled: a callback that already started runs to completion even if
    new calls arrive meanwhile.
    """

    def __init__(self, delay: float, callback: Callable[[T], Awaitable[Any]]) -> None:
        self._delay = delay
        self._callback = callback
        self._latest: T | None = None
        self._timer: asyncio.Task | None = None
        self._dispatched: set[asyncio.Task] = set()

    @property
    def is_pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def call(self, value: T) -> None:
        """Schedule value for delivery. Must be called from within a running event loop."""
        self._latest = value
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._wait_then_fire())

    def cancel(self) -> None:
        """Drop a pending value without delivering it."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def wait_idle(self) -> None:
        """Wait until no timer is pending and every dispatched callback finished."""
        while True:
            pending = {task for task in (self._timer, *self._dispatched) if task is not None and not task.done()}
            if not pending:
                return
            await asyncio.wait(pending)

    async def _wait_then_fire(self) -> None:
        await asyncio.sleep(self._delay)
        task = asyncio.ensure_future(self._callback(self._latest))
        self._dispatched.add(task)
        task.add_done_callback(self._dispatched.discard)
