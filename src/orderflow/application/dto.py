"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the HTTP/CLI layers and the application layer
without exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from orderflow.domain.model.order import Order


@dataclass(frozen=True)
class OrderDTO:
    """An order as seen by callers.

    Returned both for materialized orders and, by the intake service, for
    orders that have been accepted but not yet materialized.
    """

    id: str
    customer_id: str
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    order_date_utc: datetime
    status: str


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,
        customer_id=order.customer_id,
        product_id=order.product_id,
        product_name=order.product_name,
        quantity=order.quantity.value,
        unit_price=order.unit_price.amount,
        total_amount=order.total_amount.amount,
        order_date_utc=order.order_date_utc,
        status=order.status,
    )
