"""Durable storage for the refresh token."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

LOGGER = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Minimal string key/value capability backing the token cache."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local store; contents are lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileKeyValueStore:
    """Key/value store persisted as a single JSON object on disk."""

    def __init__(self, path: Path) -> None:
        """Initialize store location, creating parent directories."""
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> dict[str, str]:
        """Read stored mapping with empty fallback."""
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            LOGGER.warning("token_store_unreadable", extra={"path": str(self._path)})
            return {}
        if not isinstance(payload, dict):
            return {}
        return {str(key): str(value) for key, value in payload.items()}

    def _write(self, items: dict[str, str]) -> None:
        """Persist mapping, replacing the file atomically."""
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp_path.replace(self._path)

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        self._write(items)

    def delete(self, key: str) -> None:
        items = self._read()
        if key not in items:
            return
        del items[key]
        self._write(items)


class RefreshTokenCache:
    """Refresh token bound to one well-known key of a KeyValueStore.

    Only the refresh token is ever written here; the access token and user
    stay in memory.
    """

    def __init__(self, store: KeyValueStore, key: str = "bengala-refresh-token") -> None:
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def get(self) -> str | None:
        value = self._store.get(self._key)
        return value or None

    def set(self, refresh_token: str) -> None:
        if not refresh_token:
            raise ValueError("Refresh token must not be empty")
        self._store.set(self._key, refresh_token)

    def clear(self) -> None:
        self._store.delete(self._key)
