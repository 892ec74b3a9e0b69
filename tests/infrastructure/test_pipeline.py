"""End-to-end tests: intake -> queues -> consumers -> read side.

Runs against the JSON tables in a temporary directory and in-memory
queues, wired by the real composition root.
"""

import threading

import pytest

from orderflow.application.await_order import PollPolicy, Visibility
from orderflow.domain.exceptions import ConflictError, InsufficientStockError, TransientError
from tests.fakes import make_product


class TestOrderLifecycle:

    def test_accepted_order_becomes_visible(self, services):
        dto = services.create_order.handle("c-1", "p-1", 3)

        assert services.product_repo.get_by_id("p-1").stock_available == 2
        assert services.show_order.find(dto.id) is None

        services.order_workers().drain()
        services.stock_workers().drain()

        stored = services.show_order.handle(dto.id)
        assert stored.quantity == 3
        assert stored.total_amount == dto.total_amount
        assert stored.status == "Submitted"
        assert services.order_queue.is_idle() and services.stock_queue.is_idle()

    def test_insufficient_stock_changes_nothing(self, services):
        with pytest.raises(InsufficientStockError, match="Available: 5"):
            services.create_order.handle("c-1", "p-1", 10)

        assert services.product_repo.get_by_id("p-1").stock_available == 5
        assert services.order_queue.pending_bodies() == []
        assert services.stock_queue.pending_bodies() == []

    def test_redelivered_order_created_materializes_once(self, services):
        dto = services.create_order.handle("c-1", "p-1", 1)
        body = services.order_queue.pending_bodies()[0]
        services.order_queue.send(body)

        processed = services.order_workers().drain()

        assert processed == 2
        assert [o.id for o in services.list_orders.handle()] == [dto.id]
        assert services.order_queue.poison_messages() == []

    def test_malformed_message_is_dropped_not_poisoned(self, services):
        services.order_queue.send("{not json")
        services.order_workers().drain()

        assert services.order_queue.is_idle()
        assert services.order_queue.poison_messages() == []

    def test_status_update_survives_the_notification_round_trip(self, services):
        dto = services.create_order.handle("c-1", "p-1", 1)
        services.order_workers().drain()

        services.update_order_status.handle(dto.id, "Shipped")
        services.order_workers().drain()

        assert services.show_order.handle(dto.id).status == "Shipped"

    def test_poller_sees_order_materialized_by_background_workers(self, services):
        pool = services.order_workers()
        pool.start()
        try:
            dto = services.create_order.handle("c-1", "p-1", 2)
            visibility = services.poller.await_visible(
                dto.id, policy=PollPolicy(max_attempts=100, delay_seconds=0.02)
            )
        finally:
            pool.stop()

        assert visibility is Visibility.VISIBLE

    def test_poller_reports_not_yet_visible_without_workers(self, services):
        dto = services.create_order.handle("c-1", "p-1", 2)
        assert services.poller.await_visible(dto.id) is Visibility.NOT_YET_VISIBLE


class TestLastUnitRace:

    def test_exactly_one_buyer_gets_the_last_unit(self, services):
        services.product_repo.save(make_product("p-last", "Last One", "9.99", stock=1))
        start = threading.Barrier(2)
        outcomes: list[str] = []
        lock = threading.Lock()

        def buy() -> None:
            start.wait()
            try:
                services.create_order.handle("c-1", "p-last", 1)
                result = "ok"
            except InsufficientStockError:
                result = "insufficient"
            except ConflictError:
                result = "conflict"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=buy) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["insufficient", "ok"]
        assert services.product_repo.get_by_id("p-last").stock_available == 0

        services.order_workers().drain()
        assert len(services.list_orders.handle()) == 1


class TestBrokerOutage:

    def test_relay_publishes_what_the_outage_held_back(self, services, monkeypatch):
        def down(body):
            raise TransientError("broker down")

        monkeypatch.setattr(services.order_queue, "send", down)
        dto = services.create_order.handle("c-1", "p-1", 1)
        monkeypatch.undo()

        assert services.show_order.find(dto.id) is None
        assert services.dispatcher.relay_pending() == 2

        services.order_workers().drain()
        assert services.show_order.find(dto.id) is not None
