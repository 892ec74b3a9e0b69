"""Application services: Show Order and List Orders (queries)."""

from __future__ import annotations

from orderflow.application.dto import OrderDTO, order_to_dto
from orderflow.domain.exceptions import EntityNotFoundError
from orderflow.domain.repository.order_repository import OrderRepository


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: str) -> OrderDTO:
        dto = self.find(order_id)
        if dto is None:
            raise EntityNotFoundError(f"Order '{order_id}' not found")
        return dto

    def find(self, order_id: str) -> OrderDTO | None:
        """Like ``handle`` but returns None for a missing order."""
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            return None
        return order_to_dto(order)


class ListOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self) -> list[OrderDTO]:
        """Every materialized order, newest first."""
        orders = sorted(
            self._order_repo.list_all(),
            key=lambda o: o.order_date_utc,
            reverse=True,
        )
        return [order_to_dto(o) for o in orders]
