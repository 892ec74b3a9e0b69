"""OutboxEntry: a message the system has promised to publish.

Entries are written durably before the publish attempt, so a broker
outage after the stock decrement does not lose the order.  An entry is
removed once its message is on the queue; whatever is still in the
outbox is pending and the relay publishes it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class OutboxEntry:

    id: str
    queue: str
    body: str
    created_at: datetime
    sequence: int = 0  # position within the batch it was recorded with
    attempts: int = 0

    def mark_failed(self) -> None:
        self.attempts += 1
