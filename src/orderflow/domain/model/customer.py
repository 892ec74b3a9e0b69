"""Customer: read-only from the ordering pipeline's point of view."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Customer:

    id: str
    name: str
    surname: str

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip()
