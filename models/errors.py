"""Error taxonomy and retry policy shared by the API client and error handler.

``ErrorType`` alone decides what happens to a failure:

- NETWORK / TIMEOUT / SERVER errors are retried with exponential backoff
- AUTHENTICATION errors may trigger the session-expiry redirect
- everything else is raised to the caller as-is

User-facing text is in Filipino, the product's display language.
"""

from __future__ import annotations

from enum import Enum


class ErrorType(str, Enum):
    """Fixed error categories for every client-side failure."""

    NETWORK_ERROR = "NETWORK_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
    NOT_FOUND_ERROR = "NOT_FOUND_ERROR"
    SERVER_ERROR = "SERVER_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


RETRYABLE_ERROR_TYPES = frozenset({
    ErrorType.NETWORK_ERROR,
    ErrorType.TIMEOUT_ERROR,
    ErrorType.SERVER_ERROR,
})

# ── HTTP status → ErrorType ──────────────────────────────────

STATUS_ERROR_TYPES: dict[int, ErrorType] = {
    400: ErrorType.VALIDATION_ERROR,
    401: ErrorType.AUTHENTICATION_ERROR,
    403: ErrorType.AUTHORIZATION_ERROR,
    404: ErrorType.NOT_FOUND_ERROR,
    408: ErrorType.TIMEOUT_ERROR,
    500: ErrorType.SERVER_ERROR,
    502: ErrorType.SERVER_ERROR,
    503: ErrorType.SERVER_ERROR,
    504: ErrorType.SERVER_ERROR,
}

# ── Fallback messages (used when the server sends none) ──────

NO_CONNECTION_MESSAGE = "Hindi ma-connect sa server. Tignan kung may internet connection."
NO_RESPONSE_MESSAGE = "Walang response mula sa server. Subukan ulit mamaya."
UNEXPECTED_MESSAGE = "Naganap ang hindi inaasahang error. Subukan ulit mamaya."
APPLICATION_FAULT_MESSAGE = "May problema sa application. Subukan i-refresh ang page."

FALLBACK_MESSAGES: dict[ErrorType, str] = {
    ErrorType.VALIDATION_ERROR: "Mali ang datos na naipadala. Pakicheck ang input.",
    ErrorType.AUTHENTICATION_ERROR: "Hindi kayo naka-login. Mag-login muna.",
    ErrorType.AUTHORIZATION_ERROR: "Walang permiso para sa aksyon na ito.",
    ErrorType.NOT_FOUND_ERROR: "Hindi makita ang hinahanap na resource.",
    ErrorType.TIMEOUT_ERROR: "Nag-timeout ang request. Subukan ulit.",
    ErrorType.SERVER_ERROR: "May problema sa server. Subukan ulit mamaya.",
    ErrorType.NETWORK_ERROR: NO_CONNECTION_MESSAGE,
}


def fallback_message(error_type: ErrorType, status_code: int | None = None) -> str:
    """Canned message for a classified error with no server-provided text."""
    if error_type in FALLBACK_MESSAGES:
        return FALLBACK_MESSAGES[error_type]
    if status_code is not None:
        return f"Naganap ang error ({status_code}). Subukan ulit."
    return UNEXPECTED_MESSAGE


# ── Toast text per type ──────────────────────────────────────

FRIENDLY_MESSAGES: dict[ErrorType, str] = {
    ErrorType.NETWORK_ERROR: (
        "Problema sa internet connection. "
        "Pakicheck ang inyong connection at subukan ulit."
    ),
    ErrorType.AUTHENTICATION_ERROR: "Kailangan mag-login muna para makagamit ng feature na ito.",
    ErrorType.AUTHORIZATION_ERROR: (
        "Walang permiso para sa aksyon na ito. "
        "Makipag-ugnayan sa admin kung may tanong."
    ),
    ErrorType.VALIDATION_ERROR: (
        "May mali sa datos na nailagay. "
        "Pakicheck ang mga input at subukan ulit."
    ),
    ErrorType.NOT_FOUND_ERROR: (
        "Hindi makita ang hinahanap. "
        "Maaaring naitanggal na o hindi nag-eexist."
    ),
    ErrorType.SERVER_ERROR: (
        "May problema sa server. "
        "Subukan ulit mamaya o makipag-ugnayan sa support."
    ),
    ErrorType.TIMEOUT_ERROR: (
        "Nag-timeout ang request. "
        "Pakicheck ang internet connection at subukan ulit."
    ),
}

# Types whose server message is shown verbatim in the toast
VERBATIM_MESSAGE_TYPES = frozenset({
    ErrorType.VALIDATION_ERROR,
    ErrorType.AUTHORIZATION_ERROR,
})


# ── Retry policy ─────────────────────────────────────────────

DEFAULT_RETRY_BASE_DELAY = 1.0
DEFAULT_RETRY_MAX_DELAY = 16.0


def is_retryable(error_type: ErrorType) -> bool:
    return error_type in RETRYABLE_ERROR_TYPES


def get_retry_delay(
    attempt: int,
    base: float = DEFAULT_RETRY_BASE_DELAY,
    cap: float = DEFAULT_RETRY_MAX_DELAY,
) -> float:
    """Backoff in seconds for a 0-indexed retry attempt: 1, 2, 4, 8, 16, 16, ..."""
    return min(base * (2 ** attempt), cap)
