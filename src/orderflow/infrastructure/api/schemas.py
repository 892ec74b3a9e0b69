"""Pydantic request/response schemas for the Orders API.

These are the external contracts.  Field names on the wire keep the
PascalCase casing the queue messages use; Python attributes stay
snake_case through aliases.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from orderflow.application.dto import OrderDTO


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
class CreateOrderRequest(_WireModel):
    # Optional here so missing fields reach the intake validation message.
    customer_id: str | None = Field(default=None, alias="CustomerId")
    product_id: str | None = Field(default=None, alias="ProductId")
    quantity: int | None = Field(default=None, alias="Quantity")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"CustomerId": "cust-001", "ProductId": "prod-001", "Quantity": 2},
            ]
        },
    )


class UpdateStatusRequest(_WireModel):
    status: str | None = Field(default=None, alias="Status")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class OrderResponse(_WireModel):
    id: str = Field(alias="Id")
    customer_id: str = Field(alias="CustomerId")
    product_id: str = Field(alias="ProductId")
    product_name: str = Field(alias="ProductName")
    quantity: int = Field(alias="Quantity")
    unit_price: float = Field(alias="UnitPrice")
    total_amount: float = Field(alias="TotalAmount")
    order_date_utc: datetime = Field(alias="OrderDateUtc")
    status: str = Field(alias="Status")

    @classmethod
    def from_dto(cls, dto: OrderDTO) -> OrderResponse:
        return cls(
            id=dto.id,
            customer_id=dto.customer_id,
            product_id=dto.product_id,
            product_name=dto.product_name,
            quantity=dto.quantity,
            unit_price=float(dto.unit_price),
            total_amount=float(dto.total_amount),
            order_date_utc=dto.order_date_utc,
            status=dto.status,
        )

    def to_dto(self) -> OrderDTO:
        return OrderDTO(
            id=self.id,
            customer_id=self.customer_id,
            product_id=self.product_id,
            product_name=self.product_name,
            quantity=self.quantity,
            unit_price=Decimal(str(self.unit_price)),
            total_amount=Decimal(str(self.total_amount)),
            order_date_utc=self.order_date_utc,
            status=self.status,
        )


class HealthResponse(BaseModel):
    status: str = "ok"
    queue_backend: str
