"""Scheduled-callback abstraction used for the reveal delays.

Activities never sleep; they ask a scheduler to call them back.

- ``AsyncioScheduler``: ``loop.call_later`` on the running event loop
- ``ManualScheduler``: virtual clock advanced explicitly (tests, replays)
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import time
from typing import Callable, Protocol


class ScheduledCall(Protocol):
    def cancel(self) -> None: ...


class CallbackScheduler(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall: ...


class AsyncioScheduler:
    """Production scheduler; must be used from inside a running loop."""

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class _ManualCall:
    def __init__(self, deadline: float, callback: Callable[[], None]) -> None:
        self.deadline = deadline
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler driven by :meth:`advance`."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, _ManualCall]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualCall:
        call = _ManualCall(self._now + max(delay, 0.0), callback)
        heapq.heappush(self._queue, (call.deadline, next(self._seq), call))
        return call

    @property
    def pending(self) -> int:
        return sum(1 for _, _, call in self._queue if not call.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every call that falls due.

        Calls scheduled by a firing callback also run if they fall inside
        the window.  Returns the number of callbacks fired.
        """
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            deadline, _, call = heapq.heappop(self._queue)
            self._now = max(self._now, deadline)
            if call.cancelled:
                continue
            call.callback()
            fired += 1
        self._now = target
        return fired

    def run_all(self) -> int:
        """Fire everything pending, advancing the clock as far as needed."""
        fired = 0
        while self._queue:
            deadline = self._queue[0][0]
            fired += self.advance(max(deadline - self._now, 0.0))
        return fired
