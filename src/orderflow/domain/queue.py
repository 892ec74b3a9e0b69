"""Abstract durable queue.

Delivery is at-least-once.  A consumer ``receive``s a message, then
either ``complete``s it (gone for good) or ``abandon``s it (delivered
again later).  Each delivery bumps ``dequeue_count``; once it reaches the
queue's maximum delivery count an abandoned message is moved to the
poison queue instead of being redelivered.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class QueueMessage:

    id: str
    body: str
    dequeue_count: int = 0
    receipt: Any = None  # backend-specific handle needed to settle the message


class MessageQueue(ABC):

    @property
    @abstractmethod
    def name(self) -> str:
        """The queue's name."""

    @abstractmethod
    def send(self, body: str) -> None:
        """Enqueue a message body. Raises TransientError if unavailable."""

    @abstractmethod
    def receive(self) -> QueueMessage | None:
        """Take the next message without blocking, or None if empty."""

    @abstractmethod
    def complete(self, message: QueueMessage) -> None:
        """Remove a received message permanently."""

    @abstractmethod
    def abandon(self, message: QueueMessage) -> None:
        """Give a received message back for redelivery (or quarantine)."""
