"""Tests for the Orders API (FastAPI TestClient)."""

import pytest

from orderflow.domain.exceptions import ConflictError, TransientError


def _place(client, quantity: int = 3) -> dict:
    response = client.post("/orders", json={"CustomerId": "c-1", "ProductId": "p-1", "Quantity": quantity})
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateOrder:

    def test_accepted_order(self, client, services):
        body = _place(client, quantity=3)

        assert body["CustomerId"] == "c-1"
        assert body["ProductId"] == "p-1"
        assert body["ProductName"] == "Widget"
        assert body["Quantity"] == 3
        assert body["UnitPrice"] == 15.0
        assert body["TotalAmount"] == 45.0
        assert body["Status"] == "Submitted"
        assert body["Id"]
        assert body["OrderDateUtc"]
        assert services.product_repo.get_by_id("p-1").stock_available == 2

    def test_insufficient_stock(self, client, services):
        response = client.post("/orders", json={"CustomerId": "c-1", "ProductId": "p-1", "Quantity": 10})

        assert response.status_code == 400
        assert response.json() == {"error": "Insufficient stock. Available: 5"}
        assert services.product_repo.get_by_id("p-1").stock_available == 5
        assert services.order_queue.receive() is None
        assert services.stock_queue.receive() is None

    @pytest.mark.parametrize(
        "payload",
        [
            {"ProductId": "p-1", "Quantity": 1},
            {"CustomerId": "c-1", "Quantity": 1},
            {"CustomerId": "c-1", "ProductId": "p-1"},
            {"CustomerId": "c-1", "ProductId": "p-1", "Quantity": 0},
        ],
    )
    def test_incomplete_request(self, client, payload):
        response = client.post("/orders", json=payload)
        assert response.status_code == 400
        assert response.json() == {"error": "CustomerId, ProductId, Quantity >= 1 required"}

    def test_unknown_product(self, client):
        response = client.post("/orders", json={"CustomerId": "c-1", "ProductId": "nope", "Quantity": 1})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid ProductId"}

    def test_unknown_customer(self, client):
        response = client.post("/orders", json={"CustomerId": "nobody", "ProductId": "p-1", "Quantity": 1})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid CustomerId"}

    def test_malformed_body(self, client):
        response = client.post("/orders", content="not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert "error" in response.json()

    def test_wrongly_typed_quantity(self, client):
        response = client.post("/orders", json={"CustomerId": "c-1", "ProductId": "p-1", "Quantity": "many"})
        assert response.status_code == 400

    def test_conflict_maps_to_409(self, client, services, monkeypatch):
        def lose(*args, **kwargs):
            raise ConflictError("kept changing")

        monkeypatch.setattr(services.create_order, "handle", lose)
        response = client.post("/orders", json={"CustomerId": "c-1", "ProductId": "p-1", "Quantity": 1})
        assert response.status_code == 409
        assert response.json() == {"error": "kept changing"}

    def test_transient_maps_to_503(self, client, services, monkeypatch):
        def unavailable(*args, **kwargs):
            raise TransientError("disk gone")

        monkeypatch.setattr(services.create_order, "handle", unavailable)
        response = client.post("/orders", json={"CustomerId": "c-1", "ProductId": "p-1", "Quantity": 1})
        assert response.status_code == 503


class TestReadOrders:

    def test_not_visible_until_materialized(self, client, services):
        order_id = _place(client)["Id"]
        assert client.get(f"/orders/{order_id}").status_code == 404

        services.order_workers().drain()

        response = client.get(f"/orders/{order_id}")
        assert response.status_code == 200
        assert response.json()["Quantity"] == 3

    def test_unknown_order(self, client):
        response = client.get("/orders/ghost")
        assert response.status_code == 404
        assert "error" in response.json()

    def test_list_newest_first(self, client, services):
        first = _place(client, quantity=1)["Id"]
        second = _place(client, quantity=1)["Id"]
        services.order_workers().drain()

        ids = [o["Id"] for o in client.get("/orders").json()]
        assert set(ids) == {first, second}
        assert len(ids) == 2

    def test_empty_list(self, client):
        response = client.get("/orders")
        assert response.status_code == 200
        assert response.json() == []


class TestUpdateStatus:

    @pytest.mark.parametrize("method", ["patch", "put", "post"])
    def test_all_verbs_update(self, client, services, method):
        order_id = _place(client)["Id"]
        services.order_workers().drain()

        response = getattr(client, method)(f"/orders/{order_id}/status", json={"Status": "Shipped"})

        assert response.status_code == 200
        assert response.json()["Status"] == "Shipped"
        assert client.get(f"/orders/{order_id}").json()["Status"] == "Shipped"

    def test_notification_does_not_undo_a_later_write(self, client, services):
        order_id = _place(client)["Id"]
        services.order_workers().drain()

        client.patch(f"/orders/{order_id}/status", json={"Status": "Shipped"})
        client.patch(f"/orders/{order_id}/status", json={"Status": "Delivered"})
        services.order_workers().drain()

        assert client.get(f"/orders/{order_id}").json()["Status"] == "Delivered"

    def test_blank_status(self, client, services):
        order_id = _place(client)["Id"]
        services.order_workers().drain()

        response = client.patch(f"/orders/{order_id}/status", json={"Status": ""})
        assert response.status_code == 400
        assert response.json() == {"error": "Status is required"}

    def test_missing_status_field(self, client, services):
        order_id = _place(client)["Id"]
        services.order_workers().drain()

        assert client.patch(f"/orders/{order_id}/status", json={}).status_code == 400

    def test_unknown_order(self, client):
        response = client.patch("/orders/ghost/status", json={"Status": "Shipped"})
        assert response.status_code == 404


class TestDeleteOrder:

    def test_delete_then_gone(self, client, services):
        order_id = _place(client)["Id"]
        services.order_workers().drain()

        assert client.delete(f"/orders/{order_id}").status_code == 204
        assert client.get(f"/orders/{order_id}").status_code == 404

    def test_delete_unknown_is_idempotent(self, client):
        assert client.delete("/orders/ghost").status_code == 204


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "queue_backend": "memory"}
