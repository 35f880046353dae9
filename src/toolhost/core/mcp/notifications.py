"""Pending change notifications, drained by the transport."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from .constants import NOTIFY_MESSAGE, NOTIFY_RESOURCE_UPDATED

logger = logging.getLogger(__name__)

LOG_LEVELS = (
    "debug",
    "info",
    "notice",
    "warning",
    "error",
    "critical",
    "alert",
    "emergency",
)


@dataclass(frozen=True)
class Notification:
    method: str
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"method": self.method}
        if self.params:
            data["params"] = dict(self.params)
        return data


class NotificationQueue:
    """Unbounded FIFO of notifications.

    No deduplication: every enqueue is kept until ``drain()`` or ``clear()``.
    Also tracks which resource URIs the peer subscribed to.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: list[Notification] = []
        self._subscriptions: set[str] = set()

    def enqueue(self, method: str, params: dict[str, Any] | None = None) -> Notification:
        notification = Notification(method, dict(params or {}))
        with self._lock:
            self._pending.append(notification)
        logger.debug(f"Queued notification {method}")
        return notification

    def drain(self) -> list[Notification]:
        """Return pending notifications oldest first and empty the queue."""
        with self._lock:
            drained, self._pending = self._pending, []
        return drained

    def peek(self) -> list[Notification]:
        with self._lock:
            return list(self._pending)

    def size(self) -> int:
        with self._lock:
            return len(self._pending)

    def __len__(self) -> int:
        return self.size()

    def clear(self) -> None:
        with self._lock:
            self._pending.clear()

    def subscribe(self, uri: str) -> None:
        with self._lock:
            self._subscriptions.add(uri)
        logger.debug(f"Subscribed to resource {uri}")

    def unsubscribe(self, uri: str) -> bool:
        with self._lock:
            if uri not in self._subscriptions:
                return False
            self._subscriptions.remove(uri)
        logger.debug(f"Unsubscribed from resource {uri}")
        return True

    def is_subscribed(self, uri: str) -> bool:
        with self._lock:
            return uri in self._subscriptions

    def subscriptions(self) -> list[str]:
        with self._lock:
            return sorted(self._subscriptions)

    def resource_updated(self, uri: str) -> Notification | None:
        """Announce a resource change; only subscribed URIs are announced."""
        if not self.is_subscribed(uri):
            return None
        return self.enqueue(NOTIFY_RESOURCE_UPDATED, {"uri": uri})

    def log_message(
        self, level: str, message: str, data: Any = None, logger_name: str | None = None
    ) -> Notification:
        """Queue a ``notifications/message`` log entry for the peer."""
        level = level.lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"Log level must be one of {LOG_LEVELS}")
        params: dict[str, Any] = {"level": level, "data": message if data is None else data}
        if data is not None:
            params["message"] = message
        if logger_name:
            params["logger"] = logger_name
        return self.enqueue(NOTIFY_MESSAGE, params)
