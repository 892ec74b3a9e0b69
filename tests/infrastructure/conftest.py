import pytest
from fastapi.testclient import TestClient

from orderflow.infrastructure.api.app import create_app
from orderflow.infrastructure.bootstrap import Services, build_services
from orderflow.infrastructure.config import Settings
from orderflow.infrastructure.persistence.json_table import JsonTable
from tests.fakes import make_product


def seed_customer(settings: Settings, customer_id: str, name: str, surname: str) -> None:
    """Write a customer row the way the customer system would."""
    table = JsonTable(settings.table_path(settings.table_customer))
    table.upsert(customer_id, {"id": customer_id, "name": name, "surname": surname})


@pytest.fixture
def services(tmp_path) -> Services:
    """Services over a temporary storage directory and in-memory queues."""
    settings = Settings(storage_connection=tmp_path, poll_max_attempts=3, poll_delay_ms=0)
    services = build_services(settings)
    services.product_repo.save(make_product("p-1", "Widget", "15.00", stock=5))
    seed_customer(settings, "c-1", "Ada", "Lovelace")
    return services


@pytest.fixture
def client(services) -> TestClient:
    return TestClient(create_app(services))
