"""Catalog lookup port.

The order engine only reads product data through this contract; it never
writes price or name.  Stock mutations go through the reservation ledger.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from modules.catalog.dtos import ProductSnapshot


class ICatalogLookup(ABC):
    """Read-only product lookup used when pricing an order."""

    @abstractmethod
    def get_product(self, id: int) -> Optional[ProductSnapshot]:
        """Return the product's current snapshot, or ``None`` if it is gone."""
