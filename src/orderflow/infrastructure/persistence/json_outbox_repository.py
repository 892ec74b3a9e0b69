"""JSON-file-backed implementation of OutboxRepository."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from orderflow.domain.model.outbox import OutboxEntry
from orderflow.domain.repository.outbox_repository import OutboxRepository
from orderflow.infrastructure.persistence.json_table import JsonTable


class JsonOutboxRepository(OutboxRepository):

    def __init__(self, file_path: Path) -> None:
        self._table = JsonTable(file_path)

    def add_all(self, entries: list[OutboxEntry]) -> None:
        self._table.upsert_many({e.id: self._to_raw(e) for e in entries})

    def list_pending(self) -> list[OutboxEntry]:
        return sorted(
            (self._to_domain(raw) for raw in self._table.rows()),
            key=lambda e: (e.created_at, e.id.rsplit("-", 1)[0], e.sequence),
        )

    def save(self, entry: OutboxEntry) -> None:
        self._table.upsert(entry.id, self._to_raw(entry))

    def remove(self, entry_ids: list[str]) -> None:
        self._table.delete_many(entry_ids)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(entry: OutboxEntry) -> dict:
        return {
            "id": entry.id,
            "queue": entry.queue,
            "body": entry.body,
            "created_at": entry.created_at.isoformat(),
            "sequence": entry.sequence,
            "attempts": entry.attempts,
        }

    @staticmethod
    def _to_domain(raw: dict) -> OutboxEntry:
        return OutboxEntry(
            id=raw["id"],
            queue=raw["queue"],
            body=raw["body"],
            created_at=datetime.fromisoformat(raw["created_at"]),
            sequence=raw.get("sequence", 0),
            attempts=raw.get("attempts", 0),
        )
