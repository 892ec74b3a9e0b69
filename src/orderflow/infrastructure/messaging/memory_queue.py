"""In-process implementation of MessageQueue.

Behaves like a durable queue minus the durability: at-least-once
delivery, a per-message dequeue counter and a poison list for messages
abandoned too often.  Used by ``orderflow serve`` in ``memory`` mode,
where the API and the consumers share one process, and by the tests.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import replace
from uuid import uuid4

import structlog

from orderflow.domain.queue import MessageQueue, QueueMessage

logger = structlog.get_logger(__name__)


class InMemoryQueue(MessageQueue):

    def __init__(self, name: str, max_delivery_count: int = 5) -> None:
        self._name = name
        self._max_delivery_count = max_delivery_count
        self._ready: deque[QueueMessage] = deque()
        self._in_flight: dict[str, QueueMessage] = {}
        self._poison: list[QueueMessage] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def poison_name(self) -> str:
        return f"{self._name}-poison"

    # --- MessageQueue interface -----------------------------------------------

    def send(self, body: str) -> None:
        with self._lock:
            self._ready.append(QueueMessage(id=uuid4().hex, body=body))

    def receive(self) -> QueueMessage | None:
        with self._lock:
            if not self._ready:
                return None
            message = self._ready.popleft()
            message = replace(message, dequeue_count=message.dequeue_count + 1)
            self._in_flight[message.id] = message
            return message

    def complete(self, message: QueueMessage) -> None:
        with self._lock:
            self._in_flight.pop(message.id, None)

    def abandon(self, message: QueueMessage) -> None:
        with self._lock:
            if self._in_flight.pop(message.id, None) is None:
                return
            if message.dequeue_count >= self._max_delivery_count:
                self._poison.append(message)
                quarantined = True
            else:
                self._ready.append(message)
                quarantined = False

        if quarantined:
            logger.warning(
                "Message moved to poison queue",
                queue=self._name,
                poison_queue=self.poison_name,
                message_id=message.id,
                dequeue_count=message.dequeue_count,
            )

    # --- Inspection -----------------------------------------------------------

    def pending_bodies(self) -> list[str]:
        """Bodies waiting for delivery (not in flight), oldest first."""
        with self._lock:
            return [m.body for m in self._ready]

    def poison_messages(self) -> list[QueueMessage]:
        with self._lock:
            return list(self._poison)

    def is_idle(self) -> bool:
        with self._lock:
            return not self._ready and not self._in_flight
