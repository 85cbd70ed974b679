"""Event handlers for Orders domain events."""

from __future__ import annotations

from typing import Sequence

import structlog

from modules.orders.events import OrderEvent
from modules.orders.notifiers import INotifier
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class NotificationDispatcher(IEventHandler[OrderEvent]):
    """Fans an order event out to every configured notifier channel.

    Channels are independent: one failing channel is logged and the rest
    still run.
    """

    def __init__(self, channels: Sequence[INotifier]) -> None:
        self._channels = list(channels)

    @property
    def channels(self) -> Sequence[INotifier]:
        return tuple(self._channels)

    def handle(self, event: OrderEvent) -> None:
        payload = event.to_payload()
        for channel in self._channels:
            try:
                channel.notify(event.event_name, payload)
            except Exception:
                logger.exception(
                    "notification.channel_failed",
                    channel=getattr(channel, "name", type(channel).__name__),
                    event_name=event.event_name,
                    order_id=event.aggregate_id,
                )
