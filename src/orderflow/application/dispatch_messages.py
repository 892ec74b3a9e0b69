"""Application service: Message Dispatcher (transactional outbox).

Publishing to a queue cannot share a transaction with the table store,
so outgoing messages are first recorded as outbox entries in one write
and only then published.  Whatever fails to publish stays pending and
is picked up by ``relay_pending`` (``orderflow outbox relay``).  Sent
entries are removed, so the outbox only ever holds pending work.

Publishing is at-least-once: a relay running concurrently with the
original publisher may send an entry twice, which consumers tolerate.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import uuid4

import structlog

from orderflow.domain.exceptions import TransientError
from orderflow.domain.messages import Message, encode
from orderflow.domain.model.outbox import OutboxEntry
from orderflow.domain.queue import MessageQueue
from orderflow.domain.repository.outbox_repository import OutboxRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OutgoingMessage:
    """A message addressed to a named queue."""

    queue: str
    message: Message


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MessageDispatcher:

    def __init__(
        self,
        outbox_repo: OutboxRepository,
        queues: Mapping[str, MessageQueue],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._outbox_repo = outbox_repo
        self._queues = dict(queues)
        self._clock = clock

    def dispatch(self, messages: list[OutgoingMessage]) -> int:
        """Record *messages* in the outbox, then try to publish them in order.

        Returns the number of messages published now.  Transient publish
        failures leave entries pending; anything else propagates.
        """
        return self.publish(self.record(messages))

    def record(self, messages: list[OutgoingMessage]) -> list[OutboxEntry]:
        """Write *messages* to the outbox as one batch and return the entries."""
        for outgoing in messages:
            if outgoing.queue not in self._queues:
                raise KeyError(f"No queue configured named '{outgoing.queue}'")

        batch = uuid4().hex
        now = self._clock()
        entries = [
            OutboxEntry(
                id=f"{batch}-{seq}",
                queue=outgoing.queue,
                body=encode(outgoing.message),
                created_at=now,
                sequence=seq,
            )
            for seq, outgoing in enumerate(messages)
        ]
        self._outbox_repo.add_all(entries)
        return entries

    def publish(self, entries: list[OutboxEntry]) -> int:
        """Send recorded entries in order and drop the sent ones from the outbox.

        Stops at the first entry that cannot be sent so per-batch order
        survives.  Returns how many were sent.
        """
        sent: list[OutboxEntry] = []
        try:
            for entry in entries:
                try:
                    self._queues[entry.queue].send(entry.body)
                except TransientError as exc:
                    entry.mark_failed()
                    self._save_attempt(entry)
                    logger.warning(
                        "Publish failed; outbox entry left pending",
                        entry_id=entry.id,
                        queue=entry.queue,
                        attempts=entry.attempts,
                        error=str(exc),
                    )
                    break
                sent.append(entry)
        finally:
            if sent:
                self._prune(sent)
        return len(sent)

    def relay_pending(self) -> int:
        """Publish every pending outbox entry. Returns how many were sent."""
        pending = self._outbox_repo.list_pending()
        if not pending:
            return 0
        logger.info("Relaying pending outbox entries", pending=len(pending))
        return self.publish(pending)

    # --- Internal helpers -----------------------------------------------------

    def _save_attempt(self, entry: OutboxEntry) -> None:
        try:
            self._outbox_repo.save(entry)
        except TransientError as exc:
            logger.warning(
                "Could not update outbox entry",
                entry_id=entry.id,
                queue=entry.queue,
                error=str(exc),
            )

    def _prune(self, entries: list[OutboxEntry]) -> None:
        # Entries that cannot be removed are published again by the relay.
        try:
            self._outbox_repo.remove([entry.id for entry in entries])
        except TransientError as exc:
            logger.warning(
                "Could not remove published outbox entries",
                entry_ids=[entry.id for entry in entries],
                error=str(exc),
            )
