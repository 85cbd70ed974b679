"""Order repository interface.

Extends ``IRepository[Order]`` with what the Order aggregate needs:
atomic creation with items and the initial history row, row-locked
reads, order-number look-ups and status transitions.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes OrderItem children and OrderStatusHistory
    records.  Every write must run inside the caller's unit of work.
    """

    @abstractmethod
    def create(
        self,
        order_data: Dict[str, Any],
        items: Sequence[Dict[str, Any]],
        notes: str = "",
    ) -> Order:
        """Insert the order, its items and the initial history entry.

        ``items`` are dicts with ``product_id``, ``product_name``,
        ``product_sku``, ``quantity`` and ``unit_price``.  A duplicate
        ``order_number`` surfaces as ``django.db.IntegrityError``.
        """

    @abstractmethod
    def order_number_exists(self, order_number: str) -> bool:
        """Return ``True`` if some persisted order already uses the number."""

    @abstractmethod
    def get_by_number(self, order_number: str) -> Optional[Order]:
        """Retrieve an order with prefetched items and status history."""

    @abstractmethod
    def get_for_update(self, id: int) -> Optional[Order]:
        """Retrieve an order holding a row-level lock until commit."""

    @abstractmethod
    def record_transition(
        self, order: Order, new_status: str, notes: str = ""
    ) -> OrderStatusHistory:
        """Set ``order.status`` and append the matching history entry."""
