"""Abstract repository for Customer lookups."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderflow.domain.model.customer import Customer


class CustomerRepository(ABC):

    @abstractmethod
    def get_by_id(self, customer_id: str) -> Customer | None:
        """Return a customer by ID, or None if not found."""
