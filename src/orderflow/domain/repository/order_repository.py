"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderflow.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: str) -> Order | None:
        """Return an order (with its current etag) by ID, or None."""

    @abstractmethod
    def list_all(self) -> list[Order]:
        """Return every stored order."""

    @abstractmethod
    def add(self, order: Order) -> bool:
        """Create the order if no order with the same ID exists.

        Returns True when the order was created, False when the key was
        already taken (in which case nothing is written).
        """

    @abstractmethod
    def replace(self, order: Order) -> None:
        """Conditionally overwrite the order using ``order.etag``.

        Raises ConflictError on a stale etag, EntityNotFoundError when the
        order is gone.
        """

    @abstractmethod
    def delete(self, order_id: str) -> bool:
        """Delete an order. Returns False if there was nothing to delete."""
