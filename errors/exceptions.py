"""Domain-specific exceptions for the Filiup client.

``AppError`` is the single classified failure value surfaced by the API
client and the error handler.  Its ``type`` alone determines whether the
failure is retried or may end the session.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

from models.errors import ErrorType, is_retryable


class AppError(Exception):
    """A classified, immutable client error."""

    _FIELDS = frozenset({"type", "message", "status_code", "details", "timestamp"})

    def __init__(
        self,
        type: ErrorType | str,
        message: str,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        if isinstance(details, dict):
            details = MappingProxyType(dict(details))
        object.__setattr__(self, "type", ErrorType(type))
        object.__setattr__(self, "message", message)
        object.__setattr__(self, "status_code", status_code)
        object.__setattr__(self, "details", details)
        object.__setattr__(self, "timestamp", datetime.now(timezone.utc))

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self._FIELDS:
            raise AttributeError(f"AppError is immutable; cannot set {name!r}")
        super().__setattr__(name, value)

    def __delattr__(self, name: str) -> None:
        if name in self._FIELDS:
            raise AttributeError(f"AppError is immutable; cannot delete {name!r}")
        super().__delattr__(name)

    def __reduce__(self):
        details = dict(self.details) if isinstance(self.details, MappingProxyType) else self.details
        return (self.__class__, (self.type, self.message, self.status_code, details))

    def __repr__(self) -> str:
        return (
            f"AppError(type={self.type.value}, status_code={self.status_code}, "
            f"message={self.message!r})"
        )

    @property
    def retryable(self) -> bool:
        return is_retryable(self.type)

    @property
    def detail_message(self) -> str | None:
        """The ``message`` field of the server payload, if it sent one."""
        if isinstance(self.details, (dict, MappingProxyType)):
            value = self.details.get("message")
            if isinstance(value, str) and value:
                return value
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialisable view (the ``ApiError`` shape)."""
        details = self.details
        if isinstance(details, MappingProxyType):
            details = dict(details)
        return {
            "type": self.type.value,
            "message": self.message,
            "statusCode": self.status_code,
            "details": details,
            "timestamp": self.timestamp.isoformat(),
        }


class RequestCancelledError(Exception):
    """A logical request was cancelled by its caller.

    Terminal state distinct from any classified ``AppError``; never retried.
    """

    def __init__(self, method: str = "", url: str = "") -> None:
        self.method = method
        self.url = url
        target = f" {method} {url}".rstrip()
        super().__init__(f"Request cancelled{target}")


class ActivityStateError(Exception):
    """An activity operation was invoked in a state that does not allow it."""

    def __init__(self, activity: str, message: str) -> None:
        self.activity = activity
        super().__init__(f"{activity}: {message}")
