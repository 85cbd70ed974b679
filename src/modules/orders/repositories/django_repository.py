"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Writes never
open their own transaction: ``OrderService`` owns the unit of work, so an
order, its items and its history rows commit or roll back together with
the stock reservation.

Concurrency control on status changes uses ``select_for_update()``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import structlog
from django.db.models import QuerySet

from modules.orders.constants import INITIAL_HISTORY_NOTE, INITIAL_STATUS
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    def create(
        self,
        order_data: Dict[str, Any],
        items: Sequence[Dict[str, Any]],
        notes: str = "",
    ) -> Order:
        order = Order(status=INITIAL_STATUS, **order_data)
        order.save()

        for item_data in items:
            OrderItem(order=order, **item_data).save()

        OrderStatusHistory.objects.create(
            order=order,
            status=INITIAL_STATUS,
            notes=notes or INITIAL_HISTORY_NOTE,
        )

        logger.info(
            "order.persisted",
            order_id=order.id,
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self) -> QuerySet[Order]:
        return Order.objects.select_related(
            "user", "shipping_address", "billing_address"
        ).prefetch_related("items", "status_history")

    def get_by_id(self, id: int) -> Optional[Order]:
        """Returns ``None`` for non-existent or malformed ids."""
        try:
            return self._base_queryset().filter(id=id).first()
        except (TypeError, ValueError):
            return None

    def get_by_number(self, order_number: str) -> Optional[Order]:
        return self._base_queryset().filter(order_number=order_number).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """Lazy queryset so the HTTP layer can filter and paginate in SQL."""
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def order_number_exists(self, order_number: str) -> bool:
        return Order.objects.filter(order_number=order_number).exists()

    def get_for_update(self, id: int) -> Optional[Order]:
        """Lock the order row (``SELECT ... FOR UPDATE``).

        Items are prefetched after the lock is taken, so the caller sees
        the persisted quantities the lock protects.
        """
        try:
            return (
                Order.objects.select_for_update()
                .prefetch_related("items")
                .filter(id=id)
                .first()
            )
        except (TypeError, ValueError):
            return None

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def record_transition(
        self, order: Order, new_status: str, notes: str = ""
    ) -> OrderStatusHistory:
        old_status = order.status
        order.status = new_status
        order.save(update_fields=["status"])
        history = OrderStatusHistory.objects.create(
            order=order, status=new_status, notes=notes
        )
        logger.info(
            "order.history_added",
            order_id=order.id,
            old_status=old_status,
            new_status=new_status,
        )
        return history
