"""Catalog DTOs handed to the order engine."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class ProductSnapshot(BaseModel):
    """Immutable view of a product at lookup time.

    The order engine copies ``name``, ``sku`` and ``price`` into the order
    line, so later catalog edits never alter a placed order.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    sku: str
    price: Decimal
    stock_quantity: int
