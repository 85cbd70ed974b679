"""Domain events for the Orders bounded context.

One event is emitted per committed transition.  ``old_status`` is
``None`` for creation.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional

from shared.domain.events import DomainEvent

if TYPE_CHECKING:
    from modules.orders.models import Order


@dataclass(frozen=True, kw_only=True)
class OrderEvent(DomainEvent):
    order_number: str
    old_status: Optional[str]
    new_status: str
    user_id: Optional[int]
    total_amount: Decimal

    @classmethod
    def from_order(cls, order: Order, old_status: Optional[str] = None) -> OrderEvent:
        return cls(
            aggregate_id=order.id,
            order_number=order.order_number,
            old_status=old_status,
            new_status=order.status,
            user_id=order.user_id,
            total_amount=order.total_amount,
        )

    def to_payload(self) -> Dict[str, Any]:
        """JSON-safe payload handed to notifier channels."""
        return {
            "order_id": self.aggregate_id,
            "order_number": self.order_number,
            "old_status": self.old_status,
            "new_status": self.new_status,
            "user_id": self.user_id,
            "total_amount": str(self.total_amount),
        }


@dataclass(frozen=True, kw_only=True)
class OrderCreated(OrderEvent):
    """Raised when an order is created."""


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(OrderEvent):
    """Raised when an order moves to a new, non-cancelled status."""


@dataclass(frozen=True, kw_only=True)
class OrderCancelled(OrderEvent):
    """Raised when an order is cancelled and its stock released."""
