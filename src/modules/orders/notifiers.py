"""Notifier channels.

A channel receives the event name and its JSON payload and hands them to
an outbound delivery mechanism.  Channels are selected by name through
``ORDER_NOTIFIER_CHANNELS``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Protocol

import structlog
from django.core.exceptions import ImproperlyConfigured

logger = structlog.get_logger(__name__)


class INotifier(Protocol):
    name: str

    def notify(self, event_name: str, payload: Dict[str, Any]) -> None: ...


class LogNotifier:
    """Writes every event to the structured log."""

    name = "log"

    def notify(self, event_name: str, payload: Dict[str, Any]) -> None:
        logger.info("notification.logged", event_name=event_name, **payload)


class CeleryNotifier:
    """Enqueues ``orders.deliver_notification`` for out-of-process delivery."""

    name = "celery"

    def notify(self, event_name: str, payload: Dict[str, Any]) -> None:
        from modules.orders.tasks import deliver_notification

        deliver_notification.delay(event_name, payload)
        logger.info(
            "notification.enqueued",
            event_name=event_name,
            order_id=payload.get("order_id"),
        )


NOTIFIER_REGISTRY = {
    LogNotifier.name: LogNotifier,
    CeleryNotifier.name: CeleryNotifier,
}


def build_notifiers(names: Iterable[str]) -> List[INotifier]:
    """Instantiate channels by name, in order, skipping duplicates."""
    notifiers: List[INotifier] = []
    seen = set()
    for name in names:
        if name in seen:
            continue
        try:
            notifier_class = NOTIFIER_REGISTRY[name]
        except KeyError:
            raise ImproperlyConfigured(
                f"Unknown notifier channel '{name}'. "
                f"Choose from: {', '.join(sorted(NOTIFIER_REGISTRY))}."
            ) from None
        notifiers.append(notifier_class())
        seen.add(name)
    return notifiers
