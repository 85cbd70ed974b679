"""Unit tests for OrderService with stubbed collaborators.

The repositories, ledger, number generator and emitter are replaced by
mocks, so these tests pin the orchestration: what is called, in which
order, and how failures become ``OrderResult`` values.
"""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock, Mock

import pytest
from django.db import IntegrityError, OperationalError

from modules.catalog.dtos import ProductSnapshot
from modules.catalog.exceptions import InsufficientStock
from modules.catalog.ledger import StockMovement
from modules.orders.dtos import Caller, CreateOrderDTO
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.results import ErrorKind
from modules.orders.services import OrderService

pytestmark = pytest.mark.unit


def _snapshot(product_id, price="100.00"):
    return ProductSnapshot(
        id=product_id,
        name=f"Product {product_id}",
        sku=f"SKU-{product_id}",
        price=Decimal(price),
        stock_quantity=10,
    )


def _order(**overrides):
    fields = {
        "id": 41,
        "order_number": "ORD202601150001",
        "status": "pending",
        "user_id": 5,
        "total_amount": Decimal("168.00"),
        "items": MagicMock(),
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture()
def collaborators(totals_calculator):
    catalog = Mock()
    catalog.get_product.side_effect = lambda pid: _snapshot(pid)
    numbers = Mock()
    numbers.generate.return_value = "ORD202601150001"
    order_repo = Mock()
    order_repo.create.return_value = _order()
    order_repo.get_by_id.return_value = None
    ledger = Mock()
    ledger.release.return_value = []
    return SimpleNamespace(
        order_repo=order_repo,
        catalog=catalog,
        address_repo=Mock(),
        ledger=ledger,
        calculator=totals_calculator,
        numbers=numbers,
        emitter=Mock(),
    )


@pytest.fixture()
def service(collaborators):
    return OrderService(
        order_repository=collaborators.order_repo,
        catalog=collaborators.catalog,
        address_repository=collaborators.address_repo,
        ledger=collaborators.ledger,
        totals_calculator=collaborators.calculator,
        number_generator=collaborators.numbers,
        emitter=collaborators.emitter,
    )


def _dto(**overrides):
    data = {
        "user_id": 5,
        "payment_method": "cod",
        "items": [{"product_id": 7, "quantity": 1}],
    }
    data.update(overrides)
    return CreateOrderDTO(**data)


class TestCreateOrderOrchestration:
    def test_reserves_then_numbers_then_persists(self, service, collaborators):
        calls = Mock()
        calls.attach_mock(collaborators.ledger.reserve, "reserve")
        calls.attach_mock(collaborators.numbers.generate, "generate")
        calls.attach_mock(collaborators.order_repo.create, "create")

        result = service.create_order(_dto())

        assert result.ok
        assert [c[0] for c in calls.mock_calls] == ["reserve", "generate", "create"]

    def test_number_generator_checks_the_repository(self, service, collaborators):
        service.create_order(_dto())
        collaborators.numbers.generate.assert_called_once_with(
            collaborators.order_repo.order_number_exists
        )

    def test_persisted_row_carries_totals_and_snapshot(self, service, collaborators):
        service.create_order(_dto(items=[{"product_id": 7, "quantity": 2}]))

        kwargs = collaborators.order_repo.create.call_args.kwargs
        assert kwargs["order_data"]["subtotal"] == Decimal("200.00")
        assert kwargs["order_data"]["tax_amount"] == Decimal("36.00")
        assert kwargs["order_data"]["total_amount"] == Decimal("286.00")
        assert kwargs["order_data"]["payment_status"] == "pending"
        assert kwargs["items"] == [
            {
                "product_id": 7,
                "product_name": "Product 7",
                "product_sku": "SKU-7",
                "quantity": 2,
                "unit_price": Decimal("100.00"),
            }
        ]

    def test_reserves_every_line(self, service, collaborators):
        service.create_order(
            _dto(items=[{"product_id": 9, "quantity": 1}, {"product_id": 3, "quantity": 4}])
        )
        (movements,), _ = collaborators.ledger.reserve.call_args
        assert list(movements) == [StockMovement(9, 1), StockMovement(3, 4)]

    def test_emits_created_event(self, service, collaborators):
        service.create_order(_dto())
        (event,), _ = collaborators.emitter.emit_after_commit.call_args
        assert isinstance(event, OrderCreated)
        assert event.old_status is None

    def test_unknown_product_never_touches_stock(self, service, collaborators):
        collaborators.catalog.get_product.side_effect = lambda pid: None

        result = service.create_order(_dto())

        assert result.error.kind is ErrorKind.NOT_FOUND
        assert result.error.product_id == 7
        collaborators.ledger.reserve.assert_not_called()

    def test_shortfall_becomes_insufficient_stock(self, service, collaborators):
        collaborators.ledger.reserve.side_effect = InsufficientStock(7, 5, 3)

        result = service.create_order(_dto())

        assert result.error.kind is ErrorKind.INSUFFICIENT_STOCK
        assert result.error.details == {"requested": 5, "available": 3}
        collaborators.order_repo.create.assert_not_called()
        collaborators.emitter.emit_after_commit.assert_not_called()

    def test_store_failure_is_not_retried(self, service, collaborators):
        collaborators.order_repo.create.side_effect = OperationalError("disk I/O error")

        result = service.create_order(_dto())

        assert result.error.kind is ErrorKind.PERSISTENCE
        assert collaborators.order_repo.create.call_count == 1

    def test_unrelated_integrity_error_is_a_persistence_error(self, service, collaborators):
        collaborators.order_repo.create.side_effect = IntegrityError(
            "CHECK constraint failed: orders_amounts_non_negative"
        )

        result = service.create_order(_dto())

        assert result.error.kind is ErrorKind.PERSISTENCE
        assert collaborators.order_repo.create.call_count == 1

    def test_number_collision_is_retried(self, service, collaborators):
        collaborators.order_repo.create.side_effect = [
            IntegrityError("UNIQUE constraint failed: orders.order_number"),
            _order(),
        ]

        result = service.create_order(_dto())

        assert result.ok
        assert collaborators.ledger.reserve.call_count == 2
        assert collaborators.numbers.generate.call_count == 2

    def test_address_owned_by_someone_else(self, service, collaborators):
        collaborators.address_repo.get_for_user.return_value = None

        result = service.create_order(_dto(billing_address_id=12))

        assert result.error.kind is ErrorKind.NOT_FOUND
        assert result.error.details == {"field": "billing_address_id"}
        collaborators.address_repo.get_for_user.assert_called_once_with(12, 5)


class TestStatusOrchestration:
    def test_legal_transition_is_recorded_and_emitted(self, service, collaborators):
        order = _order(status="pending")
        collaborators.order_repo.get_for_update.return_value = order

        def _record(o, status, notes):
            o.status = status

        collaborators.order_repo.record_transition.side_effect = _record

        result = service.update_status(41, "confirmed", Caller(user_id=5), notes="ok")

        assert result.ok
        collaborators.order_repo.record_transition.assert_called_once_with(
            order, "confirmed", "ok"
        )
        (event,), _ = collaborators.emitter.emit_after_commit.call_args
        assert isinstance(event, OrderStatusChanged)
        assert (event.old_status, event.new_status) == ("pending", "confirmed")

    def test_illegal_transition_writes_nothing(self, service, collaborators):
        collaborators.order_repo.get_for_update.return_value = _order(status="delivered")

        result = service.update_status(41, "pending", Caller(is_privileged=True))

        assert result.error.kind is ErrorKind.ILLEGAL_TRANSITION
        collaborators.order_repo.record_transition.assert_not_called()
        collaborators.emitter.emit_after_commit.assert_not_called()

    def test_cancelled_is_delegated_to_cancel(self, service, monkeypatch):
        cancel = Mock()
        monkeypatch.setattr(service, "cancel_order", cancel)
        caller = Caller(user_id=5)

        service.update_status(41, "cancelled", caller, notes="duplicate")

        cancel.assert_called_once_with(41, caller, reason="duplicate")

    def test_cancel_releases_persisted_quantities(self, service, collaborators):
        order = _order(status="confirmed")
        order.items.all.return_value = [
            SimpleNamespace(product_id=7, quantity=2),
            SimpleNamespace(product_id=9, quantity=1),
        ]
        collaborators.order_repo.get_for_update.return_value = order

        result = service.cancel_order(41, Caller(user_id=5))

        assert result.ok
        (movements,), _ = collaborators.ledger.release.call_args
        assert list(movements) == [StockMovement(7, 2), StockMovement(9, 1)]
        collaborators.order_repo.record_transition.assert_called_once_with(
            order, "cancelled", "Order cancelled"
        )
        (event,), _ = collaborators.emitter.emit_after_commit.call_args
        assert isinstance(event, OrderCancelled)

    def test_non_owner_is_told_not_found(self, service, collaborators):
        collaborators.order_repo.get_for_update.return_value = _order(user_id=5)

        result = service.cancel_order(41, Caller(user_id=6))

        assert result.error.kind is ErrorKind.NOT_FOUND
        collaborators.ledger.release.assert_not_called()
