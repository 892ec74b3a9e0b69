"""JSON-file-backed implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from orderflow.domain.model.product import Product
from orderflow.domain.model.value_objects import Money
from orderflow.domain.repository.product_repository import ProductRepository
from orderflow.infrastructure.persistence.json_table import ETAG, JsonTable


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._table = JsonTable(file_path)

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        raw = self._table.get(product_id)
        return self._to_domain(raw) if raw is not None else None

    def list_all(self) -> list[Product]:
        return sorted(
            (self._to_domain(raw) for raw in self._table.rows()),
            key=lambda p: p.name.lower(),
        )

    def save(self, product: Product) -> None:
        product.etag = self._table.upsert(product.id, self._to_raw(product))

    def replace(self, product: Product) -> None:
        product.etag = self._table.replace(product.id, self._to_raw(product), product.etag)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "price": str(product.price.amount),
            "stock_available": product.stock_available,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        return Product(
            id=raw["id"],
            name=raw["name"],
            price=Money(Decimal(raw["price"])),
            stock_available=raw["stock_available"],
            etag=raw.get(ETAG),
        )
