"""Post-commit publication of order events."""

from __future__ import annotations

from functools import partial

import structlog
from django.db import transaction

from modules.orders.events import OrderEvent
from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


class OrderEventEmitter:
    """Publishes order events once the surrounding transaction commits.

    Nothing is published for a rolled-back unit of work.  Outside an
    atomic block the event is published immediately.  A failing subscriber
    is logged and never propagates to the caller: the order is already
    committed at that point.
    """

    def __init__(self, bus: IEventBus, using: str = "default") -> None:
        self._bus = bus
        self._using = using

    def emit_after_commit(self, event: OrderEvent) -> None:
        transaction.on_commit(partial(self._publish, event), using=self._using)

    def _publish(self, event: OrderEvent) -> None:
        try:
            self._bus.publish(event)
        except Exception:
            logger.exception(
                "order.event_publish_failed",
                event_name=event.event_name,
                event_id=str(event.event_id),
                order_id=event.aggregate_id,
            )
            return
        logger.info(
            "order.event_published",
            event_name=event.event_name,
            event_id=str(event.event_id),
            order_id=event.aggregate_id,
            new_status=event.new_status,
        )
