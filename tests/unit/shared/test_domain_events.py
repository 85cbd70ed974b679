"""Unit tests for the shared domain event primitives and in-memory bus."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from shared.domain.bus import IEventHandler
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


@dataclass(frozen=True)
class ThingHappened(DomainEvent):
    pass


@dataclass(frozen=True)
class SpecialThingHappened(ThingHappened):
    pass


class Recorder:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


class TestDomainEvent:
    def test_event_name_is_class_name(self):
        assert ThingHappened(aggregate_id=1).event_name == "ThingHappened"

    def test_event_ids_are_uuid7_and_time_ordered(self):
        first, second = ThingHappened(aggregate_id=1), ThingHappened(aggregate_id=1)
        assert first.event_id.version == 7
        assert first.event_id < second.event_id

    def test_recorder_satisfies_handler_protocol(self):
        assert isinstance(Recorder(), IEventHandler)


class TestInMemoryEventBus:
    def test_publish_to_exact_subscriber(self):
        bus, recorder = InMemoryEventBus(), Recorder()
        bus.subscribe(ThingHappened, recorder)
        event = ThingHappened(aggregate_id=3)

        bus.publish(event)

        assert recorder.events == [event]

    def test_base_subscriber_receives_subclasses(self):
        bus, recorder = InMemoryEventBus(), Recorder()
        bus.subscribe(DomainEvent, recorder)

        bus.publish(SpecialThingHappened(aggregate_id=3))

        assert [e.event_name for e in recorder.events] == ["SpecialThingHappened"]

    def test_duplicate_subscription_is_ignored(self):
        bus, recorder = InMemoryEventBus(), Recorder()
        bus.subscribe(ThingHappened, recorder)
        bus.subscribe(ThingHappened, recorder)

        bus.publish(ThingHappened(aggregate_id=1))

        assert len(recorder.events) == 1

    def test_unrelated_subscriber_not_called(self):
        bus, recorder = InMemoryEventBus(), Recorder()
        bus.subscribe(SpecialThingHappened, recorder)

        bus.publish(ThingHappened(aggregate_id=1))

        assert recorder.events == []
