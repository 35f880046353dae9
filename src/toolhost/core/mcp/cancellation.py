"""Cooperative cancellation for long-running invocations.

A ``CancellationToken`` moves from pending to cancelled exactly once.
Handlers either poll ``throw_if_cancelled()`` or subscribe with
``on_cancelled()``; nothing preempts them.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .exceptions import CancellationError
from .protocols import FaultSink, Scheduler, TimerHandle

logger = logging.getLogger(__name__)

CancelCallback = Callable[["CancellationToken"], Any]


def log_fault(error: BaseException, context: Any) -> None:
    """Default fault sink: log the isolated failure with its traceback."""
    logger.error(f"Isolated callback failure in {context!r}: {error}", exc_info=error)


def _report(sink: FaultSink, error: BaseException, context: Any) -> None:
    try:
        sink(error, context)
    except Exception:
        logger.exception("Fault sink raised while reporting a callback failure")


class ThreadingScheduler:
    """Scheduler backed by daemon ``threading.Timer`` threads."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class CancellationToken:
    """One-shot cooperative cancel signal."""

    def __init__(
        self,
        *,
        fault_sink: FaultSink | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._fault_sink = fault_sink or log_fault
        self._clock = clock
        self._lock = threading.Lock()
        self._cancelled = False
        self._reason: str | None = None
        self._cancelled_at: float | None = None
        self._callbacks: list[CancelCallback] = []
        self._timer: TimerHandle | None = None

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    @property
    def cancelled_at(self) -> float | None:
        return self._cancelled_at

    def cancel(self, reason: str | None = None) -> None:
        """Cancel the token and notify subscribers.

        Repeated calls are no-ops: the first reason and timestamp stick.
        Callback failures go to the fault sink and never reach the caller.
        """
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            self._reason = reason
            self._cancelled_at = self._clock()
            callbacks, self._callbacks = self._callbacks, []
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()

        logger.debug(f"Token cancelled (reason={reason!r}, callbacks={len(callbacks)})")
        for callback in callbacks:
            self._invoke(callback)

    def on_cancelled(self, callback: CancelCallback) -> None:
        """Subscribe ``callback(token)``; runs immediately if already cancelled."""
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return
        self._invoke(callback)

    def throw_if_cancelled(self) -> None:
        """Raise ``CancellationError`` if the token is cancelled."""
        if self._cancelled:
            raise CancellationError(self._reason, self)

    def _invoke(self, callback: CancelCallback) -> None:
        try:
            callback(self)
        except Exception as e:
            _report(self._fault_sink, e, callback)

    @classmethod
    def cancelled(cls, reason: str | None = None, **kwargs: Any) -> "CancellationToken":
        """Create a token that is already cancelled."""
        token = cls(**kwargs)
        token.cancel(reason)
        return token

    @classmethod
    def none(cls, **kwargs: Any) -> "CancellationToken":
        """Create a fresh pending token."""
        return cls(**kwargs)

    @classmethod
    def after(
        cls,
        seconds: float,
        scheduler: Scheduler,
        reason: str = "Operation timed out",
        **kwargs: Any,
    ) -> "CancellationToken":
        """Create a token that cancels itself after ``seconds``.

        Args:
            seconds: Delay before cancellation
            scheduler: Timer source (``ThreadingScheduler`` or an asyncio loop)
            reason: Reason recorded when the timer fires

        Returns:
            Pending token; cancelling it early disarms the timer
        """
        if seconds < 0:
            raise ValueError("Timeout must not be negative")
        token = cls(**kwargs)
        handle = scheduler.call_later(seconds, lambda: token.cancel(reason))
        with token._lock:
            if token._cancelled:
                handle.cancel()
            else:
                token._timer = handle
        return token

    def __repr__(self) -> str:
        state = f"cancelled reason={self._reason!r}" if self._cancelled else "pending"
        return f"<CancellationToken {state}>"


@dataclass
class TrackedRequest:
    """In-flight request known to the ``CancellationManager``."""

    token: CancellationToken
    metadata: dict[str, Any] = field(default_factory=dict)
    registered_at: float = 0.0


class CancellationManager:
    """Tracks a token per in-flight request id.

    The server registers every request on entry and unregisters it on exit;
    ``notifications/cancelled`` resolves through ``cancel_request``.
    """

    def __init__(
        self,
        *,
        fault_sink: FaultSink | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._fault_sink = fault_sink or log_fault
        self._clock = clock
        self._lock = threading.Lock()
        self._requests: dict[Any, TrackedRequest] = {}
        self._global_callback: Callable[[Any, str | None], Any] | None = None

    def register_request(
        self, request_id: Any, metadata: dict[str, Any] | None = None
    ) -> CancellationToken:
        token = CancellationToken(fault_sink=self._fault_sink, clock=self._clock)
        with self._lock:
            if request_id in self._requests:
                logger.warning(f"Request id {request_id!r} re-registered; previous token dropped")
            self._requests[request_id] = TrackedRequest(
                token=token, metadata=dict(metadata or {}), registered_at=self._clock()
            )
        logger.debug(f"Registered request {request_id!r}")
        return token

    def unregister_request(self, request_id: Any) -> bool:
        with self._lock:
            removed = self._requests.pop(request_id, None) is not None
        if removed:
            logger.debug(f"Unregistered request {request_id!r}")
        return removed

    def cancel_request(self, request_id: Any, reason: str | None = None) -> bool:
        """Cancel and forget a request.

        Returns:
            False if the id is unknown (already finished or never seen)
        """
        with self._lock:
            tracked = self._requests.pop(request_id, None)
            callback = self._global_callback
        if tracked is None:
            logger.debug(f"Cancel for unknown request {request_id!r} ignored")
            return False

        tracked.token.cancel(reason)
        logger.info(f"Cancelled request {request_id!r} (reason={reason!r})")
        if callback is not None:
            try:
                callback(request_id, reason)
            except Exception as e:
                _report(self._fault_sink, e, callback)
        return True

    def cancel_all(self, reason: str | None = None) -> int:
        cancelled = sum(
            1 for request_id in self.active_request_ids() if self.cancel_request(request_id, reason)
        )
        logger.info(f"Cancelled {cancelled} active requests (reason={reason!r})")
        return cancelled

    def get_token(self, request_id: Any) -> CancellationToken | None:
        with self._lock:
            tracked = self._requests.get(request_id)
        return tracked.token if tracked else None

    def get_metadata(self, request_id: Any) -> dict[str, Any] | None:
        with self._lock:
            tracked = self._requests.get(request_id)
        return dict(tracked.metadata) if tracked else None

    def has_request(self, request_id: Any) -> bool:
        with self._lock:
            return request_id in self._requests

    def active_request_ids(self) -> list[Any]:
        with self._lock:
            return list(self._requests)

    def __len__(self) -> int:
        with self._lock:
            return len(self._requests)

    def set_global_callback(self, callback: Callable[[Any, str | None], Any] | None) -> None:
        """Set ``callback(request_id, reason)``, run after each cancellation."""
        self._global_callback = callback

    def cleanup_old_requests(self, max_age: float = 3600.0) -> int:
        """Forget requests registered more than ``max_age`` seconds ago."""
        now = self._clock()
        with self._lock:
            stale = [
                request_id
                for request_id, tracked in self._requests.items()
                if now - tracked.registered_at > max_age
            ]
            for request_id in stale:
                del self._requests[request_id]
        if stale:
            logger.info(f"Cleaned up {len(stale)} stale requests (max_age={max_age}s)")
        return len(stale)

    def stats(self) -> dict[str, Any]:
        now = self._clock()
        with self._lock:
            ages = [now - tracked.registered_at for tracked in self._requests.values()]
            request_ids = list(self._requests)
        return {
            "active_request_count": len(request_ids),
            "oldest_request_age": max(ages) if ages else None,
            "average_request_age": sum(ages) / len(ages) if ages else None,
            "request_ids": request_ids,
        }
