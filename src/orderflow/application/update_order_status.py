"""Application service: Update Order Status use case.

This is the authoritative status write.  The order is replaced
conditionally on the etag it was read with, and only afterwards is an
``OrderStatusUpdated`` notification dispatched for downstream observers.
The order-notification consumer never applies that notification back
to the stored order.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import structlog

from orderflow.application.dispatch_messages import (
    MessageDispatcher,
    OutgoingMessage,
    utc_now,
)
from orderflow.application.dto import OrderDTO, order_to_dto
from orderflow.domain.exceptions import EntityNotFoundError, ValidationError
from orderflow.domain.messages import OrderStatusUpdatedMessage
from orderflow.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)

STATUS_UPDATED_BY = "System"


class UpdateOrderStatusHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        dispatcher: MessageDispatcher,
        order_queue: str,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._order_repo = order_repo
        self._dispatcher = dispatcher
        self._order_queue = order_queue
        self._clock = clock

    def handle(
        self,
        order_id: str,
        new_status: str,
        updated_by: str = STATUS_UPDATED_BY,
    ) -> OrderDTO:
        """Set an order's status.

        Raises ValidationError for a blank status, EntityNotFoundError for
        an unknown order, ConflictError if the order changed underneath us.
        """
        if not new_status or not new_status.strip():
            raise ValidationError("Status is required")

        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order '{order_id}' not found")

        previous = order.change_status(new_status)
        self._order_repo.replace(order)

        self._dispatcher.dispatch([
            OutgoingMessage(
                self._order_queue,
                OrderStatusUpdatedMessage(
                    order_id=order.id,
                    previous_status=previous,
                    new_status=order.status,
                    updated_date_utc=self._clock(),
                    updated_by=updated_by,
                ),
            )
        ])

        logger.info(
            "Order status updated",
            order_id=order.id,
            previous_status=previous,
            new_status=order.status,
        )
        return order_to_dto(order)
