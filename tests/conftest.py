"""Shared pytest fixtures for POS terminal tests."""

import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional

import httpx
import pytest

from pos_terminal.core.config import Settings
from pos_terminal.core.session import PosSession
from pos_terminal.models.product import ProductSnapshot
from pos_terminal.services.backoffice_client import BackOfficeClient

BASE_URL = "http://backoffice.test/api"

# Fixed scan time for alert tests
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_product(
    id: int = 1,
    name: str = "Sugar 1kg",
    current_stock: int = 50,
    min_stock_level: int = 5,
    selling_price: str = "1000",
    **kwargs,
) -> ProductSnapshot:
    """Create a product snapshot with sensible defaults."""
    return ProductSnapshot(
        id=id,
        name=name,
        sku=kwargs.pop("sku", f"SKU-{id:03d}"),
        current_stock=current_stock,
        min_stock_level=min_stock_level,
        selling_price=Decimal(selling_price),
        **kwargs,
    )


def catalog_records() -> list[dict[str, Any]]:
    """Healthy catalog as the back office returns it: nothing low or expiring."""
    far_expiry = (datetime.now(timezone.utc) + timedelta(days=120)).date().isoformat()
    return [
        {
            "id": 1, "name": "Sugar 1kg", "sku": "SKU-001",
            "current_stock": 50, "min_stock_level": 5, "selling_price": "1000.00",
            "has_expiry": False, "expiry_date": None, "category": "Groceries",
        },
        {
            "id": 2, "name": "Cooking Oil 1L", "sku": "SKU-002",
            "current_stock": 6, "min_stock_level": 5, "selling_price": "8500.00",
            "has_expiry": False, "expiry_date": None, "category": "Groceries",
        },
        {
            "id": 3, "name": "Fresh Milk 500ml", "sku": "SKU-003",
            "current_stock": 20, "min_stock_level": 2, "selling_price": 2500,
            "has_expiry": True, "expiry_date": far_expiry, "category": "Dairy",
            "supplier": {"id": 9, "name": "Dairy Co"},
        },
    ]


class FakeBackOffice:
    """In-memory back office served through httpx.MockTransport."""

    def __init__(self):
        self.products = catalog_records()
        self.tenant_settings: dict[str, Any] = {}
        self.devices: list[dict[str, Any]] = []
        self.transaction_response: dict[str, Any] = {
            "success": True,
            "data": {"id": 101, "transaction_number": "TXN-20260301-0001"},
        }
        self.failing: dict[str, int] = {}
        self.raw_bodies: dict[str, str] = {}
        self.requests: list[httpx.Request] = []

    def fail(self, path: str, status_code: int = 500) -> None:
        """Make every request to `path` return an error status."""
        self.failing[path] = status_code

    def serve_raw(self, path: str, text: str) -> None:
        """Answer `path` with a 200 whose body is `text` rather than JSON."""
        self.raw_bodies[path] = text

    def recover(self, path: str) -> None:
        self.failing.pop(path, None)
        self.raw_bodies.pop(path, None)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path == f"/api{path}"
        ]

    @staticmethod
    def body(request: httpx.Request) -> dict[str, Any]:
        return json.loads(request.content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len("/api"):]
        route = (request.method, path)

        if path in self.failing:
            return httpx.Response(self.failing[path], json={"message": f"{path} unavailable"})
        if path in self.raw_bodies:
            return httpx.Response(200, text=self.raw_bodies[path])

        if route == ("GET", "/inventory/products"):
            return httpx.Response(200, json={"success": True, "data": {"data": self.products}})
        if route == ("GET", "/tenant/settings"):
            return httpx.Response(200, json={"data": self.tenant_settings})
        if route == ("POST", "/sales/transactions"):
            return httpx.Response(201, json=self.transaction_response)
        if route == ("POST", "/notifications"):
            return httpx.Response(201, json={"success": True})
        if route == ("GET", "/mobile/devices"):
            return httpx.Response(200, json={"data": {"devices": self.devices}})
        if route == ("POST", "/mobile/generate-code"):
            return httpx.Response(200, json={"data": {"connection_code": "AB12CD", "expires_in": 300}})
        if route == ("POST", "/mobile/revoke-code"):
            return httpx.Response(200, json={"success": True})
        return httpx.Response(404, json={"message": "Not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_settings(**overrides) -> Settings:
    """Settings that ignore the environment's .env file."""
    return Settings(_env_file=None, **overrides)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def backoffice() -> FakeBackOffice:
    return FakeBackOffice()


@pytest.fixture
async def client(backoffice):
    client = BackOfficeClient(BASE_URL, api_token="test-token", transport=backoffice.transport)
    yield client
    await client.close()


@pytest.fixture
async def session(client, settings):
    """Session with the catalog loaded but no timers running."""
    session = PosSession(client=client, settings=settings, session_id="test-session")
    await session.refresh_catalog()
    yield session
    await session.close()


def persisted_titles(backoffice: FakeBackOffice) -> list[str]:
    return [backoffice.body(r)["title"] for r in backoffice.calls("POST", "/notifications")]


def titles(session: PosSession, type: Optional[str] = None) -> list[str]:
    return [
        n.title for n in session.sink.notifications
        if type is None or n.type.value == type
    ]
