"""Order, OrderItem and OrderStatusHistory models.

Rules carried by the schema:
- ``order_number`` is unique and never edited after insert.
- Money columns are ``Decimal(12, 2)`` and non-negative (DB checks).
- OrderItem snapshots product name, SKU and price at sale time;
  ``total_price`` is always ``quantity * unit_price``, recalculated on save.
- Product and address FKs use PROTECT so an order keeps pointing at what
  was sold and where it was shipped.
- OrderStatusHistory is append-only.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    INITIAL_STATUS,
    ORDER_NUMBER_MAX_LENGTH,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

MONEY = {"max_digits": 12, "decimal_places": 2, "default": Decimal("0.00")}


class Order(BaseModel):
    """Order aggregate root.

    ``user`` is ``NULL`` for guest orders.  ``payment_status`` moves
    independently of ``status``; the engine only sets its initial value.
    """

    order_number = models.CharField(
        max_length=ORDER_NUMBER_MAX_LENGTH, unique=True, editable=False
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
        null=True,
        blank=True,
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=INITIAL_STATUS,
    )
    payment_method = models.CharField(max_length=10, choices=PaymentMethod.choices)
    payment_status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    subtotal = models.DecimalField(**MONEY)
    tax_amount = models.DecimalField(**MONEY)
    shipping_amount = models.DecimalField(**MONEY)
    discount_amount = models.DecimalField(**MONEY)
    total_amount = models.DecimalField(**MONEY)
    currency = models.CharField(max_length=3, default="INR")
    shipping_address = models.ForeignKey(
        "addresses.Address",
        on_delete=models.PROTECT,
        related_name="shipping_orders",
        null=True,
        blank=True,
    )
    billing_address = models.ForeignKey(
        "addresses.Address",
        on_delete=models.PROTECT,
        related_name="billing_orders",
        null=True,
        blank=True,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["user", "-created_at"], name="orders_user_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(subtotal__gte=0)
                & models.Q(tax_amount__gte=0)
                & models.Q(shipping_amount__gte=0)
                & models.Q(discount_amount__gte=0)
                & models.Q(total_amount__gte=0),
                name="orders_amounts_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(models.Model):
    """Line item with a snapshot of the product at purchase time."""

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    product_name = models.CharField(max_length=255)
    product_sku = models.CharField(max_length=64)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "order_items"
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
            models.UniqueConstraint(
                fields=["order", "product"],
                name="order_items_unique_product_per_order",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.total_price = self.unit_price * self.quantity
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_sku} x{self.quantity}"


class OrderStatusHistory(models.Model):
    """Append-only audit trail of order status changes.

    The newest row's ``status`` always equals ``Order.status``.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    status = models.CharField(max_length=20, choices=OrderStatus.choices)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["order", "created_at"], name="osh_order_created_idx"),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.pk is not None and not self._state.adding:
            raise ValidationError("Order status history is append-only.")
        super().save(*args, **kwargs)

    def delete(self, *args: Any, **kwargs: Any):
        raise ValidationError("Order status history is append-only.")

    def __str__(self) -> str:
        return f"{self.order_id}: {self.status}"
