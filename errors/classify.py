"""Turn httpx responses and arbitrary exceptions into :class:`AppError`.

Classification order for an HTTP failure:
    1. Status code table (400/401/403/404/408/5xx).
    2. No response at all (transport failure) → NETWORK_ERROR, or
       TIMEOUT_ERROR when httpx reports a timeout.
    3. Anything else → UNKNOWN_ERROR.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from errors.exceptions import AppError
from models.errors import (
    APPLICATION_FAULT_MESSAGE,
    FALLBACK_MESSAGES,
    FRIENDLY_MESSAGES,
    NO_CONNECTION_MESSAGE,
    NO_RESPONSE_MESSAGE,
    STATUS_ERROR_TYPES,
    UNEXPECTED_MESSAGE,
    VERBATIM_MESSAGE_TYPES,
    ErrorType,
    fallback_message,
)

logger = logging.getLogger(__name__)

# Substrings in a 401 message that mean "your login is gone" rather than
# "you may not touch this resource".
SESSION_EXPIRY_MARKERS = ("token", "session", "expired", "invalid", "unauthorized")


def _response_payload(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        # Plain text is kept, but never read as the server message
        return {"body": response.text[:500]} if response.text.strip() else None


def _payload_message(payload: Any) -> str | None:
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
    return None


def parse_response_error(response: httpx.Response) -> AppError:
    """Classify a non-2xx response by status code."""
    status = response.status_code
    payload = _response_payload(response)
    error_type = STATUS_ERROR_TYPES.get(status, ErrorType.UNKNOWN_ERROR)

    # 408 never echoes the server text
    if error_type is ErrorType.TIMEOUT_ERROR:
        message = FALLBACK_MESSAGES[ErrorType.TIMEOUT_ERROR]
    else:
        message = _payload_message(payload) or fallback_message(error_type, status)

    return AppError(error_type, message, status_code=status, details=payload)


def parse_transport_error(exc: httpx.TransportError) -> AppError:
    """Classify a failure where no HTTP response was received."""
    if isinstance(exc, httpx.TimeoutException):
        return AppError(
            ErrorType.TIMEOUT_ERROR,
            FALLBACK_MESSAGES[ErrorType.TIMEOUT_ERROR],
            details={"originalError": str(exc)},
        )
    # A request object means we did try to reach the server
    message = NO_CONNECTION_MESSAGE if _has_request(exc) else NO_RESPONSE_MESSAGE
    return AppError(
        ErrorType.NETWORK_ERROR,
        message,
        details={"originalError": str(exc)},
    )


def _has_request(exc: httpx.TransportError) -> bool:
    try:
        exc.request
    except RuntimeError:
        return False
    return True


def parse_general_error(error: BaseException | str | Any) -> AppError:
    """Best-effort classification of anything an operation may raise."""
    if isinstance(error, AppError):
        return error
    if isinstance(error, httpx.HTTPStatusError):
        return parse_response_error(error.response)
    if isinstance(error, httpx.TransportError):
        return parse_transport_error(error)
    if isinstance(error, TypeError):
        return AppError(
            ErrorType.UNKNOWN_ERROR,
            APPLICATION_FAULT_MESSAGE,
            details={"originalError": str(error)},
        )
    if isinstance(error, BaseException):
        return AppError(
            ErrorType.UNKNOWN_ERROR,
            str(error) or UNEXPECTED_MESSAGE,
            details={"originalError": str(error)},
        )
    return AppError(
        ErrorType.UNKNOWN_ERROR,
        UNEXPECTED_MESSAGE,
        details={"originalError": str(error)},
    )


def get_error_message(error: Any) -> str:
    if isinstance(error, AppError):
        return error.message
    if isinstance(error, BaseException):
        return str(error) or UNEXPECTED_MESSAGE
    if isinstance(error, str):
        return error
    return UNEXPECTED_MESSAGE


def is_session_expiry(error: AppError) -> bool:
    """Heuristic: does this authentication error mean the login is gone?

    Relies on free-text matching of the server message, since the backend
    exposes no structured reason code for 401s.  A 401 with no message at
    all is treated as an implicit expiry.
    """
    if error.type is not ErrorType.AUTHENTICATION_ERROR:
        return False
    detail = error.detail_message
    if detail is None:
        return error.status_code == 401
    lowered = detail.lower()
    return any(marker in lowered for marker in SESSION_EXPIRY_MARKERS)


def get_user_friendly_message(error: AppError) -> str:
    """Toast text for an error.

    Validation and authorization errors show the server's message verbatim
    when one was sent; the rest use canned per-type text.
    """
    if error.type in VERBATIM_MESSAGE_TYPES and error.detail_message:
        return error.detail_message
    if error.type in FRIENDLY_MESSAGES:
        return FRIENDLY_MESSAGES[error.type]
    return error.message or UNEXPECTED_MESSAGE
