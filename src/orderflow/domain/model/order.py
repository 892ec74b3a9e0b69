"""Order aggregate.

An Order is never created synchronously: the intake service only computes
a snapshot and ships it in an ``OrderCreated`` message, and the
materializer turns that snapshot into the one stored Order.  After that
the only mutation is the status field, which is free-form.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.value_objects import Money, Quantity


class OrderStatus(str, Enum):
    """Well-known statuses.

    The vocabulary is open: any non-blank string is a valid status and no
    transition between statuses is forbidden.
    """

    SUBMITTED = "Submitted"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


@dataclass
class Order:
    """Aggregate root for orders.

    ``unit_price`` is the price snapshot taken at intake time; later
    catalog price changes never reach an existing order.
    """

    id: str
    customer_id: str
    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money  # locked at intake time
    order_date_utc: datetime
    status: str = OrderStatus.SUBMITTED.value
    etag: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("Order id is required")
        if self.order_date_utc.tzinfo is None:
            raise ValidationError("Order date must be timezone-aware")
        self.status = _normalize_status(self.status)

    @property
    def total_amount(self) -> Money:
        return self.unit_price * self.quantity.value

    def change_status(self, new_status: str) -> str:
        """Set a new status and return the previous one."""
        previous = self.status
        self.status = _normalize_status(new_status)
        return previous


def _normalize_status(status: str | OrderStatus | None) -> str:
    if isinstance(status, OrderStatus):
        return status.value
    if status is None or not str(status).strip():
        raise ValidationError("Status is required")
    return str(status).strip()
