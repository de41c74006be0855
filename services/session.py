"""Session-expiry handling: clear credentials and send the user to login.

Shared by the API client (automatic, on every authentication failure) and
the error handler (for errors raised outside the client).  There is no
locking: two concurrent 401s may both clear and redirect, and the "already
on the login page" check turns the second redirect into a no-op.
"""

from __future__ import annotations

import logging
from typing import Protocol

from config.settings import get_settings
from errors.classify import is_session_expiry
from errors.exceptions import AppError
from services.credentials import CredentialProvider

logger = logging.getLogger(__name__)


class Navigator(Protocol):
    """Where the user currently is, and how to send them elsewhere."""

    @property
    def current_path(self) -> str: ...

    def redirect(self, path: str) -> None: ...


class InMemoryNavigator:
    """Navigator that only records where it was sent."""

    def __init__(self, current_path: str = "/") -> None:
        self._current_path = current_path
        self.history: list[str] = []

    @property
    def current_path(self) -> str:
        return self._current_path

    def redirect(self, path: str) -> None:
        self.history.append(path)
        self._current_path = path


class SessionGuard:
    def __init__(
        self,
        credentials: CredentialProvider,
        navigator: Navigator | None = None,
        login_path: str | None = None,
    ) -> None:
        self._credentials = credentials
        self._navigator = navigator
        self._login_path = login_path or get_settings().login_path

    @property
    def login_path(self) -> str:
        return self._login_path

    def on_login_page(self) -> bool:
        if self._navigator is None:
            return False
        return self._login_path in self._navigator.current_path

    def handle_auth_error(self, error: AppError) -> bool:
        """Clear and redirect if ``error`` looks like an expired session.

        Returns True when the error was treated as a session expiry (whether
        or not a redirect was actually needed).
        """
        if not is_session_expiry(error):
            logger.warning(
                "Resource access denied (%s), not redirecting to login: %s",
                error.status_code, error.message,
            )
            return False

        self._credentials.clear()
        if self._navigator is not None and not self.on_login_page():
            logger.info("Session expired, redirecting to %s", self._login_path)
            self._navigator.redirect(self._login_path)
        return True
