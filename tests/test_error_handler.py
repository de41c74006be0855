"""Tests for services/error_handler.py: notify / redirect / generic retry."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from errors.exceptions import AppError, RequestCancelledError
from models.errors import FRIENDLY_MESSAGES, ErrorType
from services.cancellation import CancellationToken
from services.error_handler import (
    CollectingNotifier,
    ErrorHandler,
    ErrorHandlerOptions,
)


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture
def handler(notifier, session_guard) -> ErrorHandler:
    return ErrorHandler(notifier, session_guard, retry_base_delay=0)


# ---------------------------------------------------------------------------
# handle_error
# ---------------------------------------------------------------------------

class TestHandleError:
    def test_shows_friendly_toast(self, handler, notifier):
        err = handler.handle_error(AppError(ErrorType.NETWORK_ERROR, "x"))
        assert err.type is ErrorType.NETWORK_ERROR
        assert notifier.notifications[0].message == FRIENDLY_MESSAGES[ErrorType.NETWORK_ERROR]
        assert notifier.notifications[0].variant == "destructive"

    def test_custom_message(self, handler, notifier):
        handler.handle_error(
            RuntimeError("x"), ErrorHandlerOptions(custom_message="Hindi na-save")
        )
        assert notifier.notifications[0].message == "Hindi na-save"

    def test_toast_suppressed(self, handler, notifier):
        handler.handle_error(RuntimeError("x"), ErrorHandlerOptions(show_toast=False))
        assert notifier.notifications == []

    def test_on_error_callback(self, handler):
        seen = MagicMock()
        err = handler.handle_error(ValueError("bad"), ErrorHandlerOptions(on_error=seen))
        seen.assert_called_once_with(err)

    def test_session_expiry_redirects_without_toast(self, handler, notifier, navigator, storage):
        err = AppError(ErrorType.AUTHENTICATION_ERROR, "x", 401, {"message": "Session expired"})
        handler.handle_error(err)
        assert navigator.history == ["/login"]
        assert storage.get_item("accessToken") is None
        assert notifier.notifications == []

    def test_prevent_auto_redirect(self, handler, notifier, navigator, storage):
        err = AppError(ErrorType.AUTHENTICATION_ERROR, "x", 401, {"message": "Token expired"})
        handler.handle_error(err, ErrorHandlerOptions(prevent_auto_redirect=True))
        assert navigator.history == []
        assert storage.get_item("accessToken") == "test-token"
        assert len(notifier.notifications) == 1

    def test_resource_auth_error_shows_toast(self, handler, notifier, navigator):
        err = AppError(
            ErrorType.AUTHENTICATION_ERROR, "x", 401,
            {"message": "You do not own this resource"},
        )
        handler.handle_error(err)
        assert navigator.history == []
        assert notifier.notifications[0].message == FRIENDLY_MESSAGES[
            ErrorType.AUTHENTICATION_ERROR
        ]

    def test_authorization_shows_server_message(self, handler, notifier):
        err = AppError(ErrorType.AUTHORIZATION_ERROR, "x", 403, {"message": "Guro lamang"})
        handler.handle_error(err)
        assert notifier.notifications[0].message == "Guro lamang"

    def test_works_without_notifier(self, session_guard):
        err = ErrorHandler(None, session_guard).handle_error(RuntimeError("x"))
        assert err.type is ErrorType.UNKNOWN_ERROR


# ---------------------------------------------------------------------------
# execute_with_retry
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_execute_returns_value(handler):
    op = AsyncMock(return_value=42)
    assert await handler.execute_with_retry(op) == 42
    op.assert_awaited_once()


@pytest.mark.asyncio
async def test_execute_retries_retryable(handler):
    op = AsyncMock(side_effect=[
        AppError(ErrorType.SERVER_ERROR, "down", 503),
        httpx.ConnectError("refused"),
        "ok",
    ])
    assert await handler.execute_with_retry(op) == "ok"
    assert op.await_count == 3


@pytest.mark.asyncio
async def test_execute_exhausts_and_raises_last(handler):
    op = AsyncMock(side_effect=AppError(ErrorType.TIMEOUT_ERROR, "slow", 408))
    with pytest.raises(AppError) as exc_info:
        await handler.execute_with_retry(op, max_retries=2)
    assert exc_info.value.type is ErrorType.TIMEOUT_ERROR
    assert op.await_count == 3


@pytest.mark.asyncio
async def test_execute_does_not_retry_validation(handler):
    op = AsyncMock(side_effect=AppError(ErrorType.VALIDATION_ERROR, "bad", 400))
    with pytest.raises(AppError):
        await handler.execute_with_retry(op)
    assert op.await_count == 1


@pytest.mark.asyncio
async def test_execute_retry_disabled(handler):
    op = AsyncMock(side_effect=AppError(ErrorType.SERVER_ERROR, "down", 500))
    with pytest.raises(AppError):
        await handler.execute_with_retry(op, enable_retry=False)
    assert op.await_count == 1


@pytest.mark.asyncio
async def test_execute_classifies_plain_exceptions(handler):
    op = AsyncMock(side_effect=KeyError("missing"))
    with pytest.raises(AppError) as exc_info:
        await handler.execute_with_retry(op)
    assert exc_info.value.type is ErrorType.UNKNOWN_ERROR
    assert isinstance(exc_info.value.__cause__, KeyError)


@pytest.mark.asyncio
async def test_execute_backoff_delays(notifier, session_guard):
    handler = ErrorHandler(notifier, session_guard, retry_base_delay=1.0, retry_max_delay=16.0)
    op = AsyncMock(side_effect=AppError(ErrorType.NETWORK_ERROR, "x"))
    sleep = AsyncMock()
    with patch("services.error_handler.cancellable_sleep", sleep):
        with pytest.raises(AppError):
            await handler.execute_with_retry(op, max_retries=5)
    assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 4.0, 8.0, 16.0]


@pytest.mark.asyncio
async def test_execute_cancelled(handler):
    token = CancellationToken()
    token.cancel()
    op = AsyncMock(return_value=1)
    with pytest.raises(RequestCancelledError):
        await handler.execute_with_retry(op, cancel_token=token)
    op.assert_not_awaited()


# ---------------------------------------------------------------------------
# safe_execute
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_safe_execute_success(handler):
    result = await handler.safe_execute(AsyncMock(return_value={"id": 1}))
    assert result.ok
    assert result.data == {"id": 1}


@pytest.mark.asyncio
async def test_safe_execute_failure(handler, notifier):
    op = AsyncMock(side_effect=AppError(ErrorType.NOT_FOUND_ERROR, "wala", 404))
    result = await handler.safe_execute(op)
    assert not result.ok
    assert result.data is None
    assert result.error.type is ErrorType.NOT_FOUND_ERROR
    assert len(notifier.notifications) == 1
