"""Queue consumer: Order Materializer.

Turns ``OrderCreated`` messages into the one authoritative stored Order.
Delivery is at-least-once, so the write is create-if-absent: a second
delivery of the same message finds the key taken and is treated as a
successful no-op rather than an error that would loop the message into
the poison queue.

Error policy per delivery:
- unparseable / unknown payloads are logged and dropped (returning
  normally completes the message; retrying cannot fix them);
- every other exception propagates so the queue redelivers the message.

``OrderStatusUpdated`` messages are observed and logged only.  The
status was already written by the update operation that emitted them,
and this consumer never re-applies a status it did not author.
"""

from __future__ import annotations

from enum import Enum

import structlog

from orderflow.domain.exceptions import MessageFormatError, ValidationError
from orderflow.domain.messages import (
    OrderCreatedMessage,
    OrderStatusUpdatedMessage,
    decode,
)
from orderflow.domain.model.order import Order
from orderflow.domain.model.value_objects import Money, Quantity
from orderflow.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)


class MaterializeOutcome(Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    OBSERVED = "observed"
    DROPPED = "dropped"


class OrderMaterializer:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, body: str) -> MaterializeOutcome:
        try:
            message = decode(body)
            if isinstance(message, OrderCreatedMessage):
                order = self._to_order(message)
        except MessageFormatError as exc:
            logger.error("Dropping malformed order notification", error=str(exc), body=body[:500])
            return MaterializeOutcome.DROPPED

        if isinstance(message, OrderCreatedMessage):
            return self._materialize(order)

        if isinstance(message, OrderStatusUpdatedMessage):
            logger.info(
                "Order status updated",
                order_id=message.order_id,
                previous_status=message.previous_status,
                new_status=message.new_status,
                updated_by=message.updated_by,
            )
            return MaterializeOutcome.OBSERVED

        logger.error(
            "Dropping message not meant for the order-notifications queue",
            message_type=type(message).TYPE,
        )
        return MaterializeOutcome.DROPPED

    # --- Internal helpers -----------------------------------------------------

    def _materialize(self, order: Order) -> MaterializeOutcome:
        if self._order_repo.add(order):
            logger.info(
                "Order materialized",
                order_id=order.id,
                product_id=order.product_id,
                quantity=order.quantity.value,
            )
            return MaterializeOutcome.CREATED

        logger.info("Order already materialized; duplicate delivery ignored", order_id=order.id)
        return MaterializeOutcome.DUPLICATE

    @staticmethod
    def _to_order(message: OrderCreatedMessage) -> Order:
        try:
            return Order(
                id=message.order_id,
                customer_id=message.customer_id,
                product_id=message.product_id,
                product_name=message.product_name,
                quantity=Quantity(message.quantity),
                unit_price=Money(message.unit_price),
                order_date_utc=message.order_date_utc,
                status=message.status,
            )
        except ValidationError as exc:
            raise MessageFormatError(f"OrderCreated snapshot is invalid: {exc}") from exc
