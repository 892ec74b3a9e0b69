"""Product aggregate.

Products live in the catalog, which this system only reads.  The one
mutation the ordering pipeline performs on a product is withdrawing
stock, and that goes exclusively through the Stock Ledger so that every
write is conditional on the ``etag`` it was read with.
"""

from __future__ import annotations

from dataclasses import dataclass

from orderflow.domain.exceptions import InsufficientStockError, ValidationError
from orderflow.domain.model.value_objects import Money, Quantity


@dataclass
class Product:
    """A product in the catalog.

    Invariants:
    - ``stock_available`` is always >= 0
    - ``etag`` is the concurrency token of the stored copy this instance
      was read from (``None`` for a product that was never stored)
    """

    id: str
    name: str
    price: Money
    stock_available: int
    etag: str | None = None

    def __post_init__(self) -> None:
        if self.stock_available < 0:
            raise ValidationError(
                f"Stock for {self.name} cannot be negative, got {self.stock_available}"
            )

    def has_stock_for(self, quantity: int) -> bool:
        return self.stock_available >= quantity

    def withdraw(self, quantity: Quantity) -> None:
        """Take *quantity* units out of the available stock.

        Raises InsufficientStockError and leaves the product untouched if
        there is not enough stock.
        """
        if not self.has_stock_for(quantity.value):
            raise InsufficientStockError(
                product_id=self.id,
                requested=quantity.value,
                available=self.stock_available,
            )
        self.stock_available -= quantity.value
