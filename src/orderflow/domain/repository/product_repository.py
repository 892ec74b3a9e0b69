"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON, in-memory) live in the
infrastructure layer and in the test fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderflow.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product (with its current etag) by ID, or None."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Unconditionally store a product and refresh its etag."""

    @abstractmethod
    def replace(self, product: Product) -> None:
        """Store *product* only if the stored etag still equals ``product.etag``.

        Refreshes ``product.etag`` on success.  Raises ConflictError when
        another writer got there first and EntityNotFoundError when the
        product no longer exists.
        """
