"""Tests for the read side: show, list and delete orders."""

from datetime import timedelta
from decimal import Decimal

import pytest

from orderflow.application.delete_order import DeleteOrderHandler
from orderflow.application.show_order import ListOrdersHandler, ShowOrderHandler
from orderflow.domain.exceptions import EntityNotFoundError
from orderflow.domain.model.order import Order
from orderflow.domain.model.value_objects import Money, Quantity
from tests.fakes import FIXED_NOW, FakeOrderRepository


def _order(order_id: str, minutes_ago: int = 0) -> Order:
    return Order(
        id=order_id,
        customer_id="c-1",
        product_id="p-1",
        product_name="Widget",
        quantity=Quantity(3),
        unit_price=Money.of("15.00"),
        order_date_utc=FIXED_NOW - timedelta(minutes=minutes_ago),
    )


class TestShowOrder:

    def test_returns_dto(self):
        handler = ShowOrderHandler(FakeOrderRepository([_order("o-1")]))
        dto = handler.handle("o-1")

        assert dto.id == "o-1"
        assert dto.quantity == 3
        assert dto.unit_price == Decimal("15.00")
        assert dto.total_amount == Decimal("45.00")
        assert dto.status == "Submitted"

    def test_unknown_order_raises(self):
        handler = ShowOrderHandler(FakeOrderRepository())
        with pytest.raises(EntityNotFoundError, match="not found"):
            handler.handle("ghost")

    def test_find_returns_none_for_unknown_order(self):
        handler = ShowOrderHandler(FakeOrderRepository())
        assert handler.find("ghost") is None


class TestListOrders:

    def test_newest_first(self):
        repo = FakeOrderRepository([
            _order("old", minutes_ago=30),
            _order("newest", minutes_ago=0),
            _order("middle", minutes_ago=10),
        ])
        ids = [dto.id for dto in ListOrdersHandler(repo).handle()]
        assert ids == ["newest", "middle", "old"]

    def test_empty(self):
        assert ListOrdersHandler(FakeOrderRepository()).handle() == []


class TestDeleteOrder:

    def test_deletes(self):
        repo = FakeOrderRepository([_order("o-1")])
        DeleteOrderHandler(repo).handle("o-1")
        assert repo.get_by_id("o-1") is None

    def test_deleting_twice_is_a_no_op(self):
        repo = FakeOrderRepository([_order("o-1")])
        handler = DeleteOrderHandler(repo)
        handler.handle("o-1")
        handler.handle("o-1")
        assert len(repo) == 0

    def test_unknown_order_is_a_no_op(self):
        DeleteOrderHandler(FakeOrderRepository()).handle("ghost")
