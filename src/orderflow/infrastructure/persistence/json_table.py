"""A small key/value table persisted as one JSON file.

Stands in for the partitioned table store the pipeline is written
against.  Every row carries an ``etag`` that changes on each write, which
gives the repositories the two primitives they need: create-if-absent and
replace-if-etag-matches.

Every read and write holds the table lock: a thread lock shared by all
tables on the same file, then a lock file beside the table that
serializes the API, the workers and the relay when they run as separate
processes.  Writes land atomically (temp file + rename).
"""

from __future__ import annotations

import json
import os
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any
from uuid import uuid4

from filelock import FileLock, Timeout

from orderflow.domain.exceptions import (
    ConflictError,
    EntityNotFoundError,
    TransientError,
)

ETAG = "etag"
LOCK_TIMEOUT = 10.0

_locks: dict[Path, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    with _locks_guard:
        return _locks.setdefault(path, threading.RLock())


def new_etag() -> str:
    return uuid4().hex


class JsonTable:

    def __init__(self, file_path: Path, lock_timeout: float = LOCK_TIMEOUT) -> None:
        self._file_path = file_path.resolve()
        self._lock = _lock_for(self._file_path)
        self._file_lock = FileLock(
            self._file_path.with_name(f"{self._file_path.name}.lock"),
            timeout=lock_timeout,
            thread_local=False,
        )
        self._ensure_file()

    @property
    def file_path(self) -> Path:
        return self._file_path

    # --- Reads ----------------------------------------------------------------

    def get(self, key: str) -> dict[str, Any] | None:
        """Return a copy of the row (including its etag), or None."""
        with self._locked():
            row = self._load().get(key)
        return dict(row) if row is not None else None

    def rows(self) -> list[dict[str, Any]]:
        with self._locked():
            return [dict(row) for row in self._load().values()]

    # --- Writes ---------------------------------------------------------------

    def insert(self, key: str, row: dict[str, Any]) -> str | None:
        """Create the row if *key* is free. Returns the new etag, or None if taken."""
        with self._locked():
            table = self._load()
            if key in table:
                return None
            etag = new_etag()
            table[key] = {**row, ETAG: etag}
            self._persist(table)
            return etag

    def replace(self, key: str, row: dict[str, Any], etag: str | None) -> str:
        """Overwrite the row only if its stored etag equals *etag*."""
        with self._locked():
            table = self._load()
            current = table.get(key)
            if current is None:
                raise EntityNotFoundError(f"Row '{key}' not found in {self._file_path.name}")
            if etag is None or current.get(ETAG) != etag:
                raise ConflictError(f"Row '{key}' in {self._file_path.name} was modified concurrently")
            new = new_etag()
            table[key] = {**row, ETAG: new}
            self._persist(table)
            return new

    def upsert(self, key: str, row: dict[str, Any]) -> str:
        with self._locked():
            table = self._load()
            etag = new_etag()
            table[key] = {**row, ETAG: etag}
            self._persist(table)
            return etag

    def upsert_many(self, rows: dict[str, dict[str, Any]]) -> None:
        with self._locked():
            table = self._load()
            for key, row in rows.items():
                table[key] = {**row, ETAG: new_etag()}
            self._persist(table)

    def delete(self, key: str) -> bool:
        return self.delete_many([key]) == 1

    def delete_many(self, keys: Iterable[str]) -> int:
        """Remove every row in *keys* in one write. Returns how many existed."""
        with self._locked():
            table = self._load()
            removed = sum(1 for key in keys if table.pop(key, None) is not None)
            if removed:
                self._persist(table)
            return removed

    # --- File helpers ---------------------------------------------------------

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._lock:
            try:
                self._file_lock.acquire()
            except Timeout as exc:
                raise TransientError(f"Timed out waiting for the lock on {self._file_path}") from exc
            try:
                yield
            finally:
                self._file_lock.release()

    def _load(self) -> dict[str, dict[str, Any]]:
        try:
            return json.loads(self._file_path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise TransientError(f"Cannot read {self._file_path}: {exc}") from exc

    def _persist(self, table: dict[str, dict[str, Any]]) -> None:
        tmp = self._file_path.with_name(f".{self._file_path.name}.{uuid4().hex}.tmp")
        try:
            tmp.write_text(json.dumps(table, indent=2) + "\n", encoding="utf-8")
            os.replace(tmp, self._file_path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise TransientError(f"Cannot write {self._file_path}: {exc}") from exc

    def _ensure_file(self) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        with self._locked():
            if not self._file_path.exists():
                self._file_path.write_text("{}", encoding="utf-8")
