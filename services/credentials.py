"""Credential storage and the provider the API client reads tokens from.

The client never touches storage directly; it depends on a
:class:`CredentialProvider` (``get`` / ``clear``), so tests can hand it a
fake and applications can back it with whatever persistent store they have.

Two storages ship with the client:

- ``InMemoryTokenStorage``: process-local dict
- ``JsonFileTokenStorage``: persistent JSON file (survives restarts)
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Protocol, Sequence

from config.settings import get_settings

logger = logging.getLogger(__name__)


class TokenStorage(Protocol):
    """Minimal key/value store, shaped like browser ``localStorage``."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class CredentialProvider(Protocol):
    def get(self) -> str | None: ...

    def clear(self) -> None: ...


class InMemoryTokenStorage:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class JsonFileTokenStorage:
    """Token storage persisted as a flat JSON object on disk.

    Every call re-reads the file so several clients in one process (or
    several processes) observe each other's writes.  A missing or corrupt
    file reads as empty.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path or get_settings().token_file)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Unreadable credential file %s, treating as empty", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _dump(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self._path)

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._dump(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._dump(data)


class StorageCredentialProvider:
    """Reads the bearer token from the first populated legacy key.

    ``token_keys`` is checked in priority order; ``clear()`` removes every
    key in ``auth_keys`` (tokens, refresh token and the cached user).
    """

    def __init__(
        self,
        storage: TokenStorage,
        token_keys: Sequence[str] | None = None,
        auth_keys: Sequence[str] | None = None,
    ) -> None:
        settings = get_settings()
        self._storage = storage
        self._token_keys = tuple(token_keys or settings.token_keys)
        self._auth_keys = tuple(auth_keys or settings.auth_storage_keys)

    @property
    def storage(self) -> TokenStorage:
        return self._storage

    def get(self) -> str | None:
        for key in self._token_keys:
            token = self._storage.get_item(key)
            if token:
                return token
        return None

    def clear(self) -> None:
        for key in self._auth_keys:
            self._storage.remove_item(key)
        logger.info("Cleared stored credentials (%d keys)", len(self._auth_keys))
