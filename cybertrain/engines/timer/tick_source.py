"""
Scheduler abstraction for countdowns and staged delays.

TickSource hides where time comes from:
- VirtualTickSource: manually advanced clock for deterministic tests
- AsyncioTickSource: the running asyncio event loop

Both fire callbacks strictly one at a time, never concurrently.
"""

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Protocol, Tuple

Callback = Callable[[], None]

_EPSILON = 1e-9


class CancelHandle:
    """Handle returned by a schedule call; cancel() stops future firings."""

    def __init__(self, on_cancel: Optional[Callback] = None):
        self._cancelled = False
        self._on_cancel = on_cancel

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()


class TickSource(Protocol):
    """Anything that can run callbacks periodically or once after a delay."""

    def schedule(self, interval_ms: int, callback: Callback) -> CancelHandle:
        """Run callback every interval_ms until cancelled."""
        ...

    def schedule_once(self, delay_ms: int, callback: Callback) -> CancelHandle:
        """Run callback once after delay_ms unless cancelled first."""
        ...

    def now(self) -> float:
        """Current time in seconds."""
        ...


class VirtualTickSource:
    """
    Deterministic clock that only moves when advance() is called.

    Due callbacks fire in time order (ties in scheduling order); a periodic
    callback is re-queued only after it returns, so firings never overlap.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[Tuple[float, int, Optional[float], Callback, CancelHandle]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def _push(self, due: float, interval: Optional[float], callback: Callback, handle: CancelHandle) -> None:
        heapq.heappush(self._queue, (due, next(self._seq), interval, callback, handle))

    def schedule(self, interval_ms: int, callback: Callback) -> CancelHandle:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        handle = CancelHandle()
        interval = interval_ms / 1000
        self._push(self._now + interval, interval, callback, handle)
        return handle

    def schedule_once(self, delay_ms: int, callback: Callback) -> CancelHandle:
        handle = CancelHandle()
        self._push(self._now + max(0, delay_ms) / 1000, None, callback, handle)
        return handle

    @property
    def pending(self) -> int:
        """Number of scheduled entries that have not been cancelled."""
        return sum(1 for entry in self._queue if not entry[4].cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing everything that falls due on the way."""
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target + _EPSILON:
            due, _, interval, callback, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = max(self._now, due)
            callback()
            if interval is not None and not handle.cancelled:
                self._push(due + interval, interval, callback, handle)
        self._now = max(self._now, target)


class AsyncioTickSource:
    """Real-time tick source backed by loop.call_later on the running event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def schedule(self, interval_ms: int, callback: Callback) -> CancelHandle:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        interval = interval_ms / 1000
        current: List[asyncio.TimerHandle] = []

        def stop() -> None:
            if current:
                current[-1].cancel()

        handle = CancelHandle(on_cancel=stop)

        def fire() -> None:
            if handle.cancelled:
                return
            callback()
            if not handle.cancelled:
                current[:] = [self.loop.call_later(interval, fire)]

        current.append(self.loop.call_later(interval, fire))
        return handle

    def schedule_once(self, delay_ms: int, callback: Callback) -> CancelHandle:
        timer_handle = self.loop.call_later(max(0, delay_ms) / 1000, callback)
        return CancelHandle(on_cancel=timer_handle.cancel)
