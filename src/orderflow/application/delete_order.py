"""Application service: Delete Order use case."""

from __future__ import annotations

import structlog

from orderflow.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)


class DeleteOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: str) -> None:
        """Delete an order. Deleting an order that does not exist is a no-op."""
        deleted = self._order_repo.delete(order_id)
        logger.info("Order deleted", order_id=order_id, existed=deleted)
