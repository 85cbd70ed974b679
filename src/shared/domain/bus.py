"""Ports for in-process domain event delivery.

Publishers depend on ``IEventBus``; subscribers implement ``IEventHandler``.
Both are structural protocols, so a test double only needs the right
method names.
"""

from __future__ import annotations

from typing import Protocol, Type, TypeVar, runtime_checkable

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


@runtime_checkable
class IEventHandler(Protocol[E]):
    """Receives published events of (a subclass of) one event type."""

    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    """Routes published events to the handlers subscribed to their type."""

    def publish(self, event: DomainEvent) -> None: ...

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...
