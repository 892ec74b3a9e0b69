"""Queue message contracts.

The three messages are plain immutable records.  Their *wire* form is a
JSON object with PascalCase field names and a ``Type`` discriminator;
those names are a contract shared with other consumers and must not
change.  ``encode`` and ``decode`` are the only places that know about it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Union

from orderflow.domain.exceptions import MessageFormatError


@dataclass(frozen=True)
class OrderCreatedMessage:
    """Full order snapshot computed at intake; the sole source of truth
    for order creation."""

    TYPE: ClassVar[str] = "OrderCreated"

    order_id: str
    customer_id: str
    customer_name: str | None
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    order_date_utc: datetime
    status: str

    def to_wire(self) -> dict[str, Any]:
        return {
            "Type": self.TYPE,
            "OrderId": self.order_id,
            "CustomerId": self.customer_id,
            "CustomerName": self.customer_name,
            "ProductId": self.product_id,
            "ProductName": self.product_name,
            "Quantity": self.quantity,
            "UnitPrice": float(self.unit_price),
            "TotalAmount": float(self.total_amount),
            "OrderDateUtc": self.order_date_utc.isoformat(),
            "Status": self.status,
        }

    @classmethod
    def from_wire(cls, raw: dict[str, Any]) -> OrderCreatedMessage:
        return cls(
            order_id=_required_str(raw, "OrderId"),
            customer_id=_required_str(raw, "CustomerId"),
            customer_name=_optional_str(raw, "CustomerName"),
            product_id=_required_str(raw, "ProductId"),
            product_name=_required_str(raw, "ProductName"),
            quantity=_required_int(raw, "Quantity"),
            unit_price=_required_decimal(raw, "UnitPrice"),
            total_amount=_required_decimal(raw, "TotalAmount"),
            order_date_utc=_required_datetime(raw, "OrderDateUtc"),
            status=_required_str(raw, "Status"),
        )


@dataclass(frozen=True)
class OrderStatusUpdatedMessage:
    """Notification emitted *after* the authoritative status write."""

    TYPE: ClassVar[str] = "OrderStatusUpdated"

    order_id: str
    previous_status: str | None
    new_status: str | None
    updated_date_utc: datetime
    updated_by: str

    def to_wire(self) -> dict[str, Any]:
        return {
            "Type": self.TYPE,
            "OrderId": self.order_id,
            "PreviousStatus": self.previous_status,
            "NewStatus": self.new_status,
            "UpdatedDateUtc": self.updated_date_utc.isoformat(),
            "UpdatedBy": self.updated_by,
        }

    @classmethod
    def from_wire(cls, raw: dict[str, Any]) -> OrderStatusUpdatedMessage:
        return cls(
            order_id=_required_str(raw, "OrderId"),
            previous_status=_optional_str(raw, "PreviousStatus"),
            new_status=_optional_str(raw, "NewStatus"),
            updated_date_utc=_required_datetime(raw, "UpdatedDateUtc"),
            updated_by=_required_str(raw, "UpdatedBy"),
        )


@dataclass(frozen=True)
class StockUpdatedMessage:
    """Observability-only notification of a stock change."""

    TYPE: ClassVar[str] = "StockUpdated"

    product_id: str
    product_name: str
    previous_stock: int
    new_stock: int
    updated_date_utc: datetime
    updated_by: str

    def to_wire(self) -> dict[str, Any]:
        return {
            "Type": self.TYPE,
            "ProductId": self.product_id,
            "ProductName": self.product_name,
            "PreviousStock": self.previous_stock,
            "NewStock": self.new_stock,
            "UpdatedDateUtc": self.updated_date_utc.isoformat(),
            "UpdatedBy": self.updated_by,
        }

    @classmethod
    def from_wire(cls, raw: dict[str, Any]) -> StockUpdatedMessage:
        return cls(
            product_id=_required_str(raw, "ProductId"),
            product_name=_required_str(raw, "ProductName"),
            previous_stock=_required_int(raw, "PreviousStock"),
            new_stock=_required_int(raw, "NewStock"),
            updated_date_utc=_required_datetime(raw, "UpdatedDateUtc"),
            updated_by=_required_str(raw, "UpdatedBy"),
        )


Message = Union[OrderCreatedMessage, OrderStatusUpdatedMessage, StockUpdatedMessage]

_MESSAGE_TYPES: dict[str, type] = {
    cls.TYPE: cls
    for cls in (OrderCreatedMessage, OrderStatusUpdatedMessage, StockUpdatedMessage)
}


def encode(message: Message) -> str:
    return json.dumps(message.to_wire())


def decode(body: str | bytes) -> Message:
    """Parse a queue body into a message.

    Raises MessageFormatError for anything that is not a well-formed
    message of a known type.
    """
    try:
        raw = json.loads(body)
    except (TypeError, ValueError) as exc:  # JSONDecodeError and UnicodeDecodeError are ValueErrors
        raise MessageFormatError(f"Message body is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise MessageFormatError("Message body must be a JSON object")

    message_type = raw.get("Type")
    cls = _MESSAGE_TYPES.get(message_type)  # type: ignore[arg-type]
    if cls is None:
        raise MessageFormatError(f"Unknown message type: {message_type!r}")
    return cls.from_wire(raw)


# --- Field readers ------------------------------------------------------------


def _required(raw: dict[str, Any], key: str) -> Any:
    if raw.get(key) is None:
        raise MessageFormatError(f"Missing field '{key}'")
    return raw[key]


def _required_str(raw: dict[str, Any], key: str) -> str:
    value = _required(raw, key)
    if not isinstance(value, str):
        raise MessageFormatError(f"Field '{key}' must be a string")
    return value


def _optional_str(raw: dict[str, Any], key: str) -> str | None:
    if raw.get(key) is None:
        return None
    return _required_str(raw, key)


def _required_int(raw: dict[str, Any], key: str) -> int:
    value = _required(raw, key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MessageFormatError(f"Field '{key}' must be an integer")
    return value


def _required_decimal(raw: dict[str, Any], key: str) -> Decimal:
    value = _required(raw, key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MessageFormatError(f"Field '{key}' must be a number")
    try:
        result = Decimal(str(value))
    except InvalidOperation as exc:
        raise MessageFormatError(f"Field '{key}' is not a valid number") from exc
    if not result.is_finite():
        raise MessageFormatError(f"Field '{key}' must be finite")
    return result


def _required_datetime(raw: dict[str, Any], key: str) -> datetime:
    value = _required_str(raw, key)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise MessageFormatError(f"Field '{key}' is not an ISO-8601 timestamp") from exc
    if parsed.tzinfo is None:
        raise MessageFormatError(f"Field '{key}' must carry a UTC offset")
    return parsed
