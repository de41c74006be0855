"""HTTP client for the Filiup REST backend.

Wraps ``httpx.AsyncClient`` with:
- base URL from settings
- Bearer token auth read from a credential provider on every attempt
- error classification into :class:`AppError` (see ``errors.classify``)
- retry with exponential backoff (network / timeout / 5xx errors)
- session-expiry handling on 401 (clear credentials + redirect to login)
- per-request cancellation tokens
- request timing logs
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from config.settings import get_settings
from errors.classify import parse_response_error, parse_transport_error
from errors.exceptions import AppError
from models.errors import ErrorType, get_retry_delay
from services.cancellation import CancellationToken, cancellable_sleep
from services.credentials import CredentialProvider
from services.session import SessionGuard

logger = logging.getLogger(__name__)


@dataclass
class RetryState:
    """Bookkeeping for one logical request, shared by all its attempts."""

    attempt: int = 0  # retries performed so far; the only retry bookkeeping


class ApiClient:
    """Async HTTP client that returns data or raises a classified AppError."""

    def __init__(
        self,
        credentials: CredentialProvider,
        session_guard: SessionGuard | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_base_delay: float | None = None,
        retry_max_delay: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.api_timeout
        self._max_retries = max_retries if max_retries is not None else settings.api_max_retries
        self._retry_base_delay = (
            retry_base_delay if retry_base_delay is not None else settings.retry_base_delay
        )
        self._retry_max_delay = (
            retry_max_delay if retry_max_delay is not None else settings.retry_max_delay
        )
        self._credentials = credentials
        self._session_guard = session_guard
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        """Create the underlying ``httpx.AsyncClient`` connection pool."""
        if self._http is not None:
            return
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            headers={"Content-Type": "application/json"},
            follow_redirects=True,
            transport=self._transport,
        )
        logger.info("ApiClient started, base_url=%s", self._base_url)

    async def close(self) -> None:
        """Gracefully close the connection pool."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            logger.info("ApiClient closed")

    async def __aenter__(self) -> ApiClient:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def base_url(self) -> str:
        return self._base_url

    # -- public API ----------------------------------------------------------

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self._request_with_retry(
            "GET", path, params=params, cancel_token=cancel_token
        )

    async def post(
        self,
        path: str,
        json_body: Any = None,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self._request_with_retry(
            "POST", path, json_body=json_body, cancel_token=cancel_token
        )

    async def put(
        self,
        path: str,
        json_body: Any = None,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self._request_with_retry(
            "PUT", path, json_body=json_body, cancel_token=cancel_token
        )

    async def patch(
        self,
        path: str,
        json_body: Any = None,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self._request_with_retry(
            "PATCH", path, json_body=json_body, cancel_token=cancel_token
        )

    async def delete(
        self,
        path: str,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self._request_with_retry("DELETE", path, cancel_token=cancel_token)

    # -- retry logic ---------------------------------------------------------

    async def _request_with_retry(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """Execute one logical request with exponential-backoff retry.

        Retries NETWORK / TIMEOUT / SERVER errors up to ``max_retries`` times.
        Authentication errors go through the session guard and are raised
        immediately; every other error is raised without retry.
        Raises :class:`RequestCancelledError` once ``cancel_token`` fires.
        """
        client = self._ensure_started()
        state = RetryState()

        while True:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(method, path)

            t0 = time.monotonic()
            cause: Exception | None = None
            try:
                request = client.build_request(
                    method,
                    path,
                    params=params,
                    json=json_body,
                    headers=self._auth_headers(),
                )
                if cancel_token is None:
                    response = await client.send(request)
                else:
                    response = await cancel_token.run(client.send(request), method, path)
            except httpx.TransportError as exc:
                cause = exc
                error = parse_transport_error(exc)
                elapsed_ms = (time.monotonic() - t0) * 1000
                logger.warning(
                    "%s %s → network error (%.0fms): %s",
                    method, path, elapsed_ms, exc,
                )
            else:
                elapsed_ms = (time.monotonic() - t0) * 1000
                if response.is_success:
                    logger.info(
                        "%s %s → %d (%.0fms)",
                        method, path, response.status_code, elapsed_ms,
                    )
                    return self._decode(response)
                error = parse_response_error(response)
                logger.warning(
                    "%s %s → %d (%.0fms) %s",
                    method, path, response.status_code, elapsed_ms, error.type.value,
                )

            if error.type is ErrorType.AUTHENTICATION_ERROR:
                self._handle_auth_error(error)
                raise error from cause

            if error.retryable and state.attempt < self._max_retries:
                delay = get_retry_delay(
                    state.attempt, self._retry_base_delay, self._retry_max_delay
                )
                logger.warning(
                    "%s %s retrying in %.1fs (attempt %d/%d)",
                    method, path, delay, state.attempt + 1, self._max_retries,
                )
                await cancellable_sleep(delay, cancel_token, method, path)
                state.attempt += 1
                continue

            raise error from cause

    # -- internals -----------------------------------------------------------

    def _handle_auth_error(self, error: AppError) -> None:
        if self._session_guard is None:
            logger.warning("Authentication failed with no session guard: %s", error.message)
            return
        self._session_guard.handle_auth_error(error)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return response.text

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        token = self._credentials.get()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _ensure_started(self) -> httpx.AsyncClient:
        if self._http is None:
            raise RuntimeError("ApiClient not started; call await client.start() first")
        return self._http


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------

_client: ApiClient | None = None


def get_api_client() -> ApiClient:
    """Return the module-level ApiClient (create if needed).

    The default client reads tokens from the JSON credential file configured
    in settings and has no navigator, so session expiry only clears storage.
    """
    global _client
    if _client is None:
        from services.credentials import JsonFileTokenStorage, StorageCredentialProvider

        credentials = StorageCredentialProvider(JsonFileTokenStorage())
        _client = ApiClient(credentials, SessionGuard(credentials))
    return _client
