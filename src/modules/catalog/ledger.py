"""Stock reservation ledger.

Applies signed stock deltas to ``products.stock_quantity`` as part of a
caller-owned unit of work.  Every decrement is a single conditional
``UPDATE``::

    UPDATE products
       SET stock_quantity = stock_quantity - :n
     WHERE id = :p AND stock_quantity >= :n

so two concurrent reservations on the same product serialize on the row
and neither can act on a stale read.  A zero affected-row count means the
product is short, and the whole batch is failed by raising
``InsufficientStock``; the enclosing ``transaction.atomic()`` then discards
the decrements already applied by the same call.

``release`` is the equal and opposite increment.  It is not idempotent:
the order service guarantees it runs at most once per order.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, NamedTuple

import structlog
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.catalog.exceptions import InsufficientStock
from modules.catalog.models import Product

logger = structlog.get_logger(__name__)


class StockMovement(NamedTuple):
    product_id: int
    quantity: int


class StockReservationLedger:
    """Reserve and release stock for a batch of products."""

    def __init__(self, using: str = "default") -> None:
        self._using = using

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def reserve(self, movements: Iterable[StockMovement]) -> int:
        """Decrement stock for every movement or fail the whole batch.

        Returns the number of product rows updated, which always equals the
        number of distinct products in the batch.

        Raises:
            InsufficientStock: the first product (in id order) whose stock
                cannot cover the requested quantity.
        """
        batch = self._normalize(movements)
        self._require_atomic("reserve")

        updated_rows = 0
        for movement in batch:
            updated = (
                Product.objects.using(self._using)
                .filter(id=movement.product_id, stock_quantity__gte=movement.quantity)
                .update(
                    stock_quantity=F("stock_quantity") - movement.quantity,
                    updated_at=timezone.now(),
                )
            )
            if updated != 1:
                available = self._current_stock(movement.product_id)
                logger.warning(
                    "stock.reservation_rejected",
                    product_id=movement.product_id,
                    requested=movement.quantity,
                    available=available,
                )
                raise InsufficientStock(
                    product_id=movement.product_id,
                    requested=movement.quantity,
                    available=available,
                )
            updated_rows += updated
            logger.info(
                "stock.reserved",
                product_id=movement.product_id,
                quantity=movement.quantity,
            )

        if updated_rows != len(batch):
            # Unreachable unless the backend misreports row counts.
            raise RuntimeError(
                f"Stock reservation touched {updated_rows} rows for {len(batch)} items."
            )
        return updated_rows

    def release(self, movements: Iterable[StockMovement]) -> List[int]:
        """Add back previously reserved quantities.

        Returns the ids of products whose rows no longer exist; those units
        could not be restored and need manual reconciliation.
        """
        batch = self._normalize(movements)
        self._require_atomic("release")

        unmatched: List[int] = []
        for movement in batch:
            updated = (
                Product.objects.using(self._using)
                .filter(id=movement.product_id)
                .update(
                    stock_quantity=F("stock_quantity") + movement.quantity,
                    updated_at=timezone.now(),
                )
            )
            if updated != 1:
                unmatched.append(movement.product_id)
                continue
            logger.info(
                "stock.released",
                product_id=movement.product_id,
                quantity=movement.quantity,
            )
        return unmatched

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize(movements: Iterable[StockMovement]) -> List[StockMovement]:
        """Merge duplicate products and sort by id (stable lock order)."""
        totals: Dict[int, int] = {}
        for product_id, quantity in movements:
            if quantity <= 0:
                raise ValueError(
                    f"Stock movement for product {product_id} must be positive, got {quantity}."
                )
            totals[product_id] = totals.get(product_id, 0) + quantity
        return [StockMovement(pid, qty) for pid, qty in sorted(totals.items())]

    def _require_atomic(self, operation: str) -> None:
        if not transaction.get_connection(self._using).in_atomic_block:
            raise RuntimeError(
                f"Stock {operation} must run inside transaction.atomic()."
            )

    def _current_stock(self, product_id: int):
        return (
            Product.objects.using(self._using)
            .filter(id=product_id)
            .values_list("stock_quantity", flat=True)
            .first()
        )
