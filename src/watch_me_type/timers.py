"""Timer facilities that drive the typing scheduler."""

import asyncio
import heapq
import itertools
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable


class Cancellable(Protocol):
    """Handle of a deferred callback."""

    def cancel(self) -> None:
        """Prevent the callback from running if it has not run yet."""


class Timer(Protocol):
    """Single-context scheduling primitive used by the typing manager.

    Every callback handed to a timer runs on the same execution context, so
    the code it calls never needs locks.
    """

    def call_later(self, delay: float, callback: "Callable[[], None]") -> Cancellable:
        """Run ``callback`` once after ``delay`` seconds."""

    def dispatch(self, callback: "Callable[[], None]") -> None:
        """Run ``callback`` on the timer's context; safe to call from any thread."""

    def monotonic(self) -> float:
        """Return the current monotonic time in seconds."""


class AsyncioTimer:
    """Timer backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        """Initialize the timer.

        Args:
            loop: The event loop that owns all typing state.

        """
        self.loop = loop

    def call_later(self, delay: float, callback: "Callable[[], None]") -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)

    def dispatch(self, callback: "Callable[[], None]") -> None:
        self.loop.call_soon_threadsafe(callback)

    def monotonic(self) -> float:
        return self.loop.time()


class _VirtualHandle:
    def __init__(self, when: float, callback: "Callable[[], None]") -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualClock:
    """Deterministic timer whose time only moves when told to.

    Callbacks fire in order of due time, ties in order of scheduling.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self._queue: list[tuple[float, int, _VirtualHandle]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: "Callable[[], None]") -> _VirtualHandle:
        handle = _VirtualHandle(self.now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (handle.when, next(self._counter), handle))
        return handle

    def dispatch(self, callback: "Callable[[], None]") -> None:
        callback()

    def monotonic(self) -> float:
        return self.now

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have not been cancelled."""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> int:
        """Move time forward, firing every callback that becomes due.

        Returns:
            The number of callbacks that ran.

        """
        deadline = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= deadline:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = when
            handle.callback()
            fired += 1
        self.now = deadline
        return fired

    def run_until_idle(self, max_callbacks: int = 1_000_000) -> int:
        """Fire callbacks until none are left, jumping time as needed."""
        fired = 0
        while self._queue and fired < max_callbacks:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = max(self.now, when)
            handle.callback()
            fired += 1
        return fired

