"""Caller-facing error handling: notify, redirect, retry.

``ErrorHandler`` is what pages/commands use around their own operations:

- ``handle_error``: classify, log, maybe end the session, maybe notify
- ``execute_with_retry``: generic retry for any async operation, independent
  of the API client's built-in retry
- ``safe_execute``: retry, then handle; returns ``SafeResult`` instead of raising
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Protocol, TypeVar

from config.settings import get_settings
from errors.classify import get_user_friendly_message, parse_general_error
from errors.exceptions import AppError, RequestCancelledError
from models.errors import ErrorType, get_retry_delay
from services.cancellation import CancellationToken, cancellable_sleep
from services.session import SessionGuard

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3


class Notifier(Protocol):
    def notify(self, title: str, message: str, variant: str = "destructive") -> None: ...


@dataclass
class Notification:
    title: str
    message: str
    variant: str = "destructive"


class CollectingNotifier:
    """Keeps notifications in memory (CLI output, tests)."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, title: str, message: str, variant: str = "destructive") -> None:
        self.notifications.append(Notification(title, message, variant))


@dataclass
class SafeResult(Generic[T]):
    data: T | None = None
    error: AppError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ErrorHandlerOptions:
    show_toast: bool = True
    custom_message: str | None = None
    on_error: Callable[[AppError], Any] | None = None
    enable_retry: bool = True
    max_retries: int = DEFAULT_MAX_RETRIES
    prevent_auto_redirect: bool = False


class ErrorHandler:
    def __init__(
        self,
        notifier: Notifier | None = None,
        session_guard: SessionGuard | None = None,
        retry_base_delay: float | None = None,
        retry_max_delay: float | None = None,
    ) -> None:
        settings = get_settings()
        self._notifier = notifier
        self._session_guard = session_guard
        self._retry_base_delay = (
            retry_base_delay if retry_base_delay is not None else settings.retry_base_delay
        )
        self._retry_max_delay = (
            retry_max_delay if retry_max_delay is not None else settings.retry_max_delay
        )

    def handle_error(
        self,
        error: Any,
        options: ErrorHandlerOptions | None = None,
    ) -> AppError:
        """Classify ``error`` and apply the user-facing policy.

        Authentication errors that look like an expired session are handed to
        the session guard (unless ``prevent_auto_redirect``); in that case no
        toast is shown, since the redirect is the signal.
        """
        opts = options or ErrorHandlerOptions()
        app_error = parse_general_error(error)

        logger.error(
            "Error handled: type=%s status=%s message=%s",
            app_error.type.value, app_error.status_code, app_error.message,
        )

        redirected = False
        if (
            app_error.type is ErrorType.AUTHENTICATION_ERROR
            and not opts.prevent_auto_redirect
            and self._session_guard is not None
        ):
            redirected = self._session_guard.handle_auth_error(app_error)

        if opts.show_toast and not redirected and self._notifier is not None:
            message = opts.custom_message or get_user_friendly_message(app_error)
            self._notifier.notify("Error", message, "destructive")

        if opts.on_error is not None:
            opts.on_error(app_error)

        return app_error

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        enable_retry: bool = True,
        cancel_token: CancellationToken | None = None,
    ) -> T:
        """Run ``operation``; retry NETWORK / TIMEOUT / SERVER failures.

        At most ``max_retries + 1`` calls.  Raises the last classified
        :class:`AppError` when retries are exhausted or the error is not
        retryable.
        """
        for attempt in range(max_retries + 1):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            try:
                return await operation()
            except RequestCancelledError:
                raise
            except Exception as exc:
                app_error = parse_general_error(exc)
                if enable_retry and app_error.retryable and attempt < max_retries:
                    delay = get_retry_delay(
                        attempt, self._retry_base_delay, self._retry_max_delay
                    )
                    logger.warning(
                        "Retrying operation in %.1fs (attempt %d/%d)",
                        delay, attempt + 1, max_retries + 1,
                    )
                    await cancellable_sleep(delay, cancel_token)
                    continue
                if app_error is exc:
                    raise
                raise app_error from exc

        # Only reachable with a negative max_retries
        raise AppError(ErrorType.UNKNOWN_ERROR, "Operation failed after retries")

    async def safe_execute(
        self,
        operation: Callable[[], Awaitable[T]],
        options: ErrorHandlerOptions | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> SafeResult[T]:
        """Retry then handle; never raises an :class:`AppError`."""
        opts = options or ErrorHandlerOptions()
        try:
            data = await self.execute_with_retry(
                operation,
                max_retries=opts.max_retries,
                enable_retry=opts.enable_retry,
                cancel_token=cancel_token,
            )
        except AppError as exc:
            return SafeResult(error=self.handle_error(exc, opts))
        return SafeResult(data=data)
