"""Session identity and per-session state."""

import logging
import secrets
import threading
from typing import Any

logger = logging.getLogger(__name__)

SESSION_ID_BYTES = 16


class SessionManager:
    """Holds one session id and a key/value store, cleared together.

    Expiry and transport binding are left to the transport.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._session_id: str | None = None
        self._data: dict[str, Any] = {}

    def generate_session_id(self) -> str:
        """Create a random 128-bit id (32 hex chars) and make it current."""
        session_id = secrets.token_hex(SESSION_ID_BYTES)
        with self._lock:
            self._session_id = session_id
        logger.debug("Generated new session id")
        return session_id

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @session_id.setter
    def session_id(self, value: str | None) -> None:
        with self._lock:
            self._session_id = value

    def clear(self) -> None:
        with self._lock:
            self._session_id = None
            self._data.clear()

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, _MISSING) is not _MISSING

    def all(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._data)


_MISSING = object()
