"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from orderflow.domain.model.order import Order
from orderflow.domain.model.value_objects import Money, Quantity
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.infrastructure.persistence.json_table import ETAG, JsonTable


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._table = JsonTable(file_path)

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: str) -> Order | None:
        raw = self._table.get(order_id)
        return self._to_domain(raw) if raw is not None else None

    def list_all(self) -> list[Order]:
        return [self._to_domain(raw) for raw in self._table.rows()]

    def add(self, order: Order) -> bool:
        etag = self._table.insert(order.id, self._to_raw(order))
        if etag is None:
            return False
        order.etag = etag
        return True

    def replace(self, order: Order) -> None:
        order.etag = self._table.replace(order.id, self._to_raw(order), order.etag)

    def delete(self, order_id: str) -> bool:
        return self._table.delete(order_id)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "customer_id": order.customer_id,
            "product_id": order.product_id,
            "product_name": order.product_name,
            "quantity": order.quantity.value,
            "unit_price": str(order.unit_price.amount),
            "order_date_utc": order.order_date_utc.isoformat(),
            "status": order.status,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        return Order(
            id=raw["id"],
            customer_id=raw["customer_id"],
            product_id=raw["product_id"],
            product_name=raw["product_name"],
            quantity=Quantity(raw["quantity"]),
            unit_price=Money(Decimal(raw["unit_price"])),
            order_date_utc=datetime.fromisoformat(raw["order_date_utc"]),
            status=raw["status"],
            etag=raw.get(ETAG),
        )
