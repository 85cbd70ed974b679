"""Unit tests for Order, OrderItem and OrderStatusHistory models."""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError, models, transaction
from django.db.models import ProtectedError

from modules.orders.constants import OrderStatus, PaymentMethod, PaymentStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory

pytestmark = pytest.mark.unit


@pytest.fixture()
def order(user):
    return Order.objects.create(
        order_number="ORD202601150001",
        user=user,
        payment_method=PaymentMethod.COD,
        subtotal=Decimal("500.00"),
        tax_amount=Decimal("90.00"),
        total_amount=Decimal("590.00"),
    )


class TestOrder:
    def test_defaults(self, order):
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.currency == "INR"
        assert order.discount_amount == Decimal("0.00")

    def test_str(self, order):
        assert str(order) == "ORD202601150001 (pending)"

    def test_order_number_is_unique(self, order):
        with pytest.raises(IntegrityError), transaction.atomic():
            Order.objects.create(
                order_number=order.order_number, payment_method=PaymentMethod.ONLINE
            )

    def test_negative_amount_rejected_by_database(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            Order.objects.create(
                order_number="ORD-NEG",
                payment_method=PaymentMethod.COD,
                total_amount=Decimal("-1.00"),
            )

    def test_guest_order_has_no_user(self):
        guest = Order.objects.create(order_number="ORD-GUEST", payment_method="cod")
        assert guest.user_id is None


class TestOrderItem:
    def test_total_price_computed_on_save(self, order, make_product):
        product = make_product(price="12.50")
        item = OrderItem.objects.create(
            order=order,
            product=product,
            product_name=product.name,
            product_sku=product.sku,
            quantity=3,
            unit_price=Decimal("12.50"),
        )
        assert item.total_price == Decimal("37.50")

    def test_zero_quantity_rejected_by_clean(self, order, make_product):
        product = make_product()
        item = OrderItem(
            order=order,
            product=product,
            product_name=product.name,
            product_sku=product.sku,
            quantity=0,
            unit_price=Decimal("1.00"),
        )
        with pytest.raises(ValidationError):
            item.clean()

    def test_zero_quantity_rejected_by_database(self, order, make_product):
        product = make_product()
        with pytest.raises(IntegrityError), transaction.atomic():
            OrderItem.objects.create(
                order=order,
                product=product,
                product_name=product.name,
                product_sku=product.sku,
                quantity=0,
                unit_price=Decimal("1.00"),
            )

    def test_product_is_protected(self, order, make_product):
        product = make_product()
        OrderItem.objects.create(
            order=order,
            product=product,
            product_name=product.name,
            product_sku=product.sku,
            quantity=1,
            unit_price=product.price,
        )
        # Product.delete() is a soft delete; go through Model.delete to hit PROTECT.
        with pytest.raises(ProtectedError):
            models.Model.delete(product)


class TestOrderStatusHistory:
    def test_append(self, order):
        entry = OrderStatusHistory.objects.create(
            order=order, status=OrderStatus.PENDING, notes="Order created"
        )
        assert entry.pk is not None

    def test_existing_entry_cannot_be_updated(self, order):
        entry = OrderStatusHistory.objects.create(order=order, status="pending")
        entry.notes = "rewritten"
        with pytest.raises(ValidationError, match="append-only"):
            entry.save()

    def test_entry_cannot_be_deleted(self, order):
        entry = OrderStatusHistory.objects.create(order=order, status="pending")
        with pytest.raises(ValidationError, match="append-only"):
            entry.delete()
        assert OrderStatusHistory.objects.filter(pk=entry.pk).exists()

    def test_history_ordered_oldest_first(self, order):
        OrderStatusHistory.objects.create(order=order, status="pending")
        OrderStatusHistory.objects.create(order=order, status="confirmed")
        assert list(order.status_history.values_list("status", flat=True)) == [
            "pending",
            "confirmed",
        ]
