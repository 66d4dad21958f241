"""Pytest fixtures for the storefront tests."""

import shutil
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from velvet_vogue.app import create_app
from velvet_vogue.common.domain import Customer, LineItem, Product
from velvet_vogue.common.repository import InMemoryRepository
from velvet_vogue.common.services.payment_service import SimulatedPaymentGateway
from velvet_vogue.config import SEED_CATALOG, StoreConfig
from velvet_vogue.services import CatalogRepository


CUSTOMER_PAYLOAD = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "email": "ada@example.com",
    "phone": "07700 900123",
    "address": "1 Analytical Way",
    "city": "London",
    "postcode": "sw1a 1aa",
    "country": "United Kingdom",
}


def make_item(product_id="VV001", price="10.00", quantity=1, name=None):
    return LineItem(
        product_id=product_id,
        name=name or f"Product {product_id}",
        unit_price=Decimal(price),
        quantity=quantity,
    )


class FixedClock:
    """Clock that moves one minute forward on every call."""

    def __init__(self, start=None):
        self._now = start or datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)

    def __call__(self):
        current = self._now
        self._now += timedelta(minutes=1)
        return current


@pytest.fixture
def customer():
    return Customer.from_dict(CUSTOMER_PAYLOAD)


@pytest.fixture
def catalog_file(tmp_path):
    target = tmp_path / "products.json"
    shutil.copyfile(SEED_CATALOG, target)
    return target


@pytest.fixture
def catalog_repo(catalog_file):
    return CatalogRepository(catalog_file)


@pytest.fixture
def memory_repo(catalog_repo):
    return InMemoryRepository(catalog_repo.load_products())


@pytest.fixture
def scarf():
    return Product(id="VV004", name="Silk Scarf", price=Decimal("25.00"), stock=60)


@pytest.fixture
def approving_gateway():
    return SimulatedPaymentGateway(success_rate=1.0, delay_seconds=0)


@pytest.fixture
def declining_gateway():
    return SimulatedPaymentGateway(success_rate=0.0, delay_seconds=0)


@pytest.fixture
def store_config(tmp_path, catalog_file):
    return StoreConfig(
        secret_key="test-secret",
        admin_username="admin@velvetvogue.com",
        admin_password="admin123",
        data_dir=tmp_path,
        database_url=f"sqlite:///{tmp_path / 'store.db'}",
        payment_delay_seconds=0,
    )


@pytest.fixture
def app(store_config, approving_gateway):
    flask_app = create_app(store_config, gateway=approving_gateway)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(app):
    test_client = app.test_client()
    response = test_client.post(
        "/api/admin/login",
        json={"username": "admin@velvetvogue.com", "password": "admin123"},
    )
    assert response.status_code == 200
    return test_client
