from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.addresses.models import Address
from modules.addresses.repositories import AddressDjangoRepository
from modules.catalog.ledger import StockReservationLedger
from modules.catalog.models import Product
from modules.catalog.repositories import CatalogDjangoRepository
from modules.orders.dtos import Caller
from modules.orders.emitter import OrderEventEmitter
from modules.orders.numbering import OrderNumberGenerator
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.orders.totals import TotalsCalculator
from shared.infrastructure.bus import InMemoryEventBus

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users & callers
# ---------------------------------------------------------------------------


@pytest.fixture()
def user():
    return User.objects.create_user(username="shopper", password="testpass123")


@pytest.fixture()
def other_user():
    return User.objects.create_user(username="someone-else", password="testpass123")


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="warehouse", password="testpass123", is_staff=True
    )


@pytest.fixture()
def caller(user):
    return Caller(user_id=user.id)


@pytest.fixture()
def staff_caller(staff_user):
    return Caller(user_id=staff_user.id, is_privileged=True)


@pytest.fixture()
def auth_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


# ---------------------------------------------------------------------------
# Catalog & addresses
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product():
    counter = {"n": 0}

    def _make(price="100.00", stock=10, **kwargs):
        counter["n"] += 1
        defaults = {
            "sku": f"SKU-{counter['n']:04d}",
            "name": f"Product {counter['n']}",
        }
        defaults.update(kwargs)
        return Product.objects.create(
            price=Decimal(price), stock_quantity=stock, **defaults
        )

    return _make


@pytest.fixture()
def address(user):
    return Address.objects.create(
        user=user,
        address_line1="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        postal_code="560001",
    )


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


@pytest.fixture()
def event_bus():
    return InMemoryEventBus()


@pytest.fixture()
def published(event_bus):
    """Every event published on ``event_bus``, in order."""
    events = []

    class _Recorder:
        def handle(self, event):
            events.append(event)

    from shared.domain.events import DomainEvent

    event_bus.subscribe(DomainEvent, _Recorder())
    return events


@pytest.fixture()
def totals_calculator():
    return TotalsCalculator(
        tax_rate=Decimal("0.18"),
        free_shipping_threshold=Decimal("500.00"),
        flat_shipping_fee=Decimal("50.00"),
    )


@pytest.fixture()
def order_service(event_bus, totals_calculator):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        catalog=CatalogDjangoRepository(),
        address_repository=AddressDjangoRepository(),
        ledger=StockReservationLedger(),
        totals_calculator=totals_calculator,
        number_generator=OrderNumberGenerator(prefix="ORD"),
        emitter=OrderEventEmitter(event_bus),
    )
