"""JSON-file-backed implementation of CustomerRepository.

Customer rows are maintained by the customer system; this side only reads.
"""

from __future__ import annotations

from pathlib import Path

from orderflow.domain.model.customer import Customer
from orderflow.domain.repository.customer_repository import CustomerRepository
from orderflow.infrastructure.persistence.json_table import JsonTable


class JsonCustomerRepository(CustomerRepository):

    def __init__(self, file_path: Path) -> None:
        self._table = JsonTable(file_path)

    def get_by_id(self, customer_id: str) -> Customer | None:
        raw = self._table.get(customer_id)
        return self._to_domain(raw) if raw is not None else None

    @staticmethod
    def _to_domain(raw: dict) -> Customer:
        return Customer(id=raw["id"], name=raw["name"], surname=raw.get("surname", ""))
