"""Catalog domain exceptions."""

from __future__ import annotations

from typing import Optional


class InsufficientStock(Exception):
    """A reservation asked for more units than the product currently has.

    ``available`` is ``None`` when the product row itself is missing.
    """

    def __init__(self, product_id: int, requested: int, available: Optional[int]):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available or 0}."
        )
