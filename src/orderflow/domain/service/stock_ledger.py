"""Domain service: Stock Ledger.

A product's stock counter is the only piece of shared mutable state the
ordering pipeline contends on.  There is no lock: every decrement reads
the product together with its etag and writes back conditionally, and a
lost race is resolved by re-reading and trying again, a bounded number
of times.

Because sufficiency is re-checked on every attempt, a retry can turn a
conflict into InsufficientStockError, which is what the losing side of
a race for the last unit should see.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from orderflow.domain.exceptions import ConflictError, EntityNotFoundError
from orderflow.domain.model.product import Product
from orderflow.domain.model.value_objects import Quantity
from orderflow.domain.repository.product_repository import ProductRepository

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class StockChange:
    """Result of a successful decrement."""

    product: Product
    previous_stock: int
    new_stock: int


class StockLedger:

    def __init__(
        self,
        product_repo: ProductRepository,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._product_repo = product_repo
        self._max_attempts = max_attempts

    def decrement(self, product_id: str, quantity: int) -> StockChange:
        """Withdraw *quantity* units from a product's available stock.

        Raises:
            ValidationError: quantity below 1.
            EntityNotFoundError: the product does not exist.
            InsufficientStockError: not enough stock (checked per attempt).
            ConflictError: every attempt lost to a concurrent writer.
        """
        qty = Quantity(quantity)

        for attempt in range(1, self._max_attempts + 1):
            product = self._product_repo.get_by_id(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product '{product_id}' not found")

            previous = product.stock_available
            product.withdraw(qty)

            try:
                self._product_repo.replace(product)
            except ConflictError:
                logger.info(
                    "Stock write lost to a concurrent writer",
                    product_id=product_id,
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                )
                continue

            return StockChange(
                product=product,
                previous_stock=previous,
                new_stock=product.stock_available,
            )

        raise ConflictError(
            f"Stock for product '{product_id}' kept changing concurrently "
            f"(gave up after {self._max_attempts} attempts)"
        )
