"""Abstract repository for outbox entries."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderflow.domain.model.outbox import OutboxEntry


class OutboxRepository(ABC):

    @abstractmethod
    def add_all(self, entries: list[OutboxEntry]) -> None:
        """Durably record a batch of entries in a single write."""

    @abstractmethod
    def list_pending(self) -> list[OutboxEntry]:
        """Return every entry still in the outbox, oldest first, batch order preserved."""

    @abstractmethod
    def save(self, entry: OutboxEntry) -> None:
        """Persist an updated entry (attempt counter)."""

    @abstractmethod
    def remove(self, entry_ids: list[str]) -> None:
        """Drop published entries in a single write. Unknown ids are ignored."""
