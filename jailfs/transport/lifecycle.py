"""Draining state and worker tracking for graceful shutdown."""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Iterator

from jailfs.domain.correlation_id import CorrelationLoggerAdapter

LIFECYCLE_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("jailfs.transport.lifecycle"), {}
)


class ServerLifecycle:
    """Tracks connection threads and whether the server is shutting down."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._draining = threading.Event()
        self._workers: set[threading.Thread] = set()

    def is_draining(self) -> bool:
        return self._draining.is_set()

    def begin_draining(self) -> None:
        """Stop accepting connections and let in-flight requests finish."""
        self._draining.set()
        LIFECYCLE_LOGGER.info(
            "Beginning graceful shutdown", extra={"event": "draining_started"}
        )

    @contextmanager
    def track(self, thread: threading.Thread) -> Iterator[None]:
        """Count ``thread`` as active for the duration of the block."""
        with self._lock:
            self._workers.add(thread)
        try:
            yield
        finally:
            with self._lock:
                self._workers.discard(thread)

    def active_worker_count(self) -> int:
        with self._lock:
            return len(self._workers)

    def wait_for_workers(self, timeout: float) -> bool:
        """Join tracked workers until none remain or ``timeout`` elapses."""
        deadline = time.monotonic() + timeout
        while True:
            with self._lock:
                active_workers = [w for w in self._workers if w.is_alive()]
            if not active_workers:
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                LIFECYCLE_LOGGER.warning(
                    "Shutdown timeout exceeded",
                    extra={
                        "event": "shutdown_timeout",
                        "remaining_workers": len(active_workers),
                    },
                )
                return False
            active_workers[0].join(timeout=min(0.1, remaining))
