"""Catalog product model: price, identity and the stock level.

Business rules implemented:
- SKU is unique and normalised to uppercase.
- Price must be greater than zero.
- Stock quantity can never be negative (DB check constraint).
- Soft delete via ``deleted_at``: a removed product disappears from lookups
  but its row stays, so cancelled orders can still release stock into it.

Stock is only ever changed through ``modules.catalog.ledger``; price and name
are owned by catalog management, which is outside this service.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel


class Product(SoftDeleteModel):
    """Catalog entry as seen by the order engine."""

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    stock_quantity = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="products_stock_non_negative",
            ),
        ]

    def save(self, *args, **kwargs) -> None:
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"
