"""Cancellation tokens for logical requests and their retry loops."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, TypeVar

from errors.exceptions import RequestCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """Signal owned by a caller and threaded through one request's retries.

    ``cancel()`` wakes any pending backoff wait and interrupts an in-flight
    dispatch; the request then ends in :class:`RequestCancelledError`.
    """

    def __init__(self) -> None:
        self._event: asyncio.Event | None = None
        self._cancelled = False

    def _get_event(self) -> asyncio.Event:
        # Lazy so the event binds to the loop that actually awaits it
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        return self._event

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    def raise_if_cancelled(self, method: str = "", url: str = "") -> None:
        if self._cancelled:
            raise RequestCancelledError(method, url)

    async def sleep(self, delay: float, method: str = "", url: str = "") -> None:
        """Wait ``delay`` seconds, or raise as soon as the token is cancelled."""
        self.raise_if_cancelled(method, url)
        try:
            await asyncio.wait_for(self._get_event().wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise RequestCancelledError(method, url)

    async def run(self, awaitable: Awaitable[T], method: str = "", url: str = "") -> T:
        """Await ``awaitable`` unless the token is cancelled first."""
        if self._cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise RequestCancelledError(method, url)
        work: asyncio.Future[Any] = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._get_event().wait())
        try:
            done, _ = await asyncio.wait(
                {work, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()
        if work in done:
            return work.result()
        work.cancel()
        logger.info("In-flight request cancelled: %s %s", method, url)
        raise RequestCancelledError(method, url)


async def cancellable_sleep(
    delay: float,
    token: CancellationToken | None,
    method: str = "",
    url: str = "",
) -> None:
    if token is None:
        await asyncio.sleep(delay)
    else:
        await token.sleep(delay, method, url)
