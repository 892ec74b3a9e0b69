"""Background outbox relay.

Periodically republishes outbox entries whose first publish failed.  One
thread per relay; ``stop()`` wakes it immediately.
"""

from __future__ import annotations

import threading

import structlog

from orderflow.application.dispatch_messages import MessageDispatcher
from orderflow.domain.exceptions import TransientError

logger = structlog.get_logger(__name__)


class OutboxRelay:

    def __init__(self, dispatcher: MessageDispatcher, interval: float = 5.0) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._dispatcher = dispatcher
        self._interval = interval
        self._stopping = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._thread = threading.Thread(target=self._run, name="outbox-relay", daemon=True)
        self._thread.start()
        logger.info("Outbox relay started", interval=self._interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stopping.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Outbox relay stopped")

    def run_once(self) -> int:
        """Relay everything pending now. Returns the number of entries published."""
        try:
            return self._dispatcher.relay_pending()
        except TransientError as exc:
            logger.warning("Outbox unavailable", error=str(exc))
            return 0

    def _run(self) -> None:
        while not self._stopping.wait(self._interval):
            self.run_once()
