"""Shared pytest fixtures for client and activity tests.

Provides:
- ``storage`` / ``credentials``: in-memory token storage holding a token
- ``navigator`` / ``session_guard``: records login redirects
- ``scheduler``: ManualScheduler for deterministic reveal delays
- ``make_client``: ApiClient factory backed by ``httpx.MockTransport``
"""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from activities.scheduler import ManualScheduler
from services.api_client import ApiClient
from services.credentials import InMemoryTokenStorage, StorageCredentialProvider
from services.session import InMemoryNavigator, SessionGuard


@pytest.fixture
def storage() -> InMemoryTokenStorage:
    return InMemoryTokenStorage({
        "accessToken": "test-token",
        "refreshToken": "test-refresh",
        "filiup_user": '{"id": "u-1"}',
    })


@pytest.fixture
def credentials(storage) -> StorageCredentialProvider:
    return StorageCredentialProvider(storage)


@pytest.fixture
def navigator() -> InMemoryNavigator:
    return InMemoryNavigator("/student/dashboard")


@pytest.fixture
def session_guard(credentials, navigator) -> SessionGuard:
    return SessionGuard(credentials, navigator, login_path="/login")


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def make_client(credentials, session_guard) -> Callable[..., ApiClient]:
    """Build an ApiClient whose transport is ``handler``; no real backoff."""

    def _make(handler, **kwargs) -> ApiClient:
        kwargs.setdefault("base_url", "https://api.example.com/api")
        kwargs.setdefault("retry_base_delay", 0)
        return ApiClient(
            credentials,
            session_guard,
            transport=httpx.MockTransport(handler),
            **kwargs,
        )

    return _make
