"""Composition root for the order engine.

Builds the service graph once per process from Django settings.  Views
and tasks ask for the service here instead of reaching for module-level
singletons; tests construct ``OrderService`` directly with doubles.
"""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from django.conf import settings

from modules.addresses.repositories import AddressDjangoRepository
from modules.catalog.ledger import StockReservationLedger
from modules.catalog.repositories import CatalogDjangoRepository
from modules.orders.emitter import OrderEventEmitter
from modules.orders.events import OrderEvent
from modules.orders.handlers import NotificationDispatcher
from modules.orders.notifiers import build_notifiers
from modules.orders.numbering import OrderNumberGenerator
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.orders.totals import TotalsCalculator
from shared.infrastructure.bus import InMemoryEventBus


def build_event_bus() -> InMemoryEventBus:
    bus = InMemoryEventBus()
    dispatcher = NotificationDispatcher(build_notifiers(settings.ORDER_NOTIFIER_CHANNELS))
    bus.subscribe(OrderEvent, dispatcher)
    return bus


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        catalog=CatalogDjangoRepository(),
        address_repository=AddressDjangoRepository(),
        ledger=StockReservationLedger(),
        totals_calculator=TotalsCalculator(
            tax_rate=Decimal(settings.ORDER_TAX_RATE),
            free_shipping_threshold=Decimal(settings.ORDER_FREE_SHIPPING_THRESHOLD),
            flat_shipping_fee=Decimal(settings.ORDER_FLAT_SHIPPING_FEE),
        ),
        number_generator=OrderNumberGenerator(
            prefix=settings.ORDER_NUMBER_PREFIX,
            max_attempts=settings.ORDER_NUMBER_MAX_ATTEMPTS,
        ),
        emitter=OrderEventEmitter(build_event_bus()),
        create_max_attempts=settings.ORDER_CREATE_MAX_ATTEMPTS,
    )


@lru_cache(maxsize=1)
def get_order_service() -> OrderService:
    return build_order_service()
