import pytest
from enum import Enum, auto
from rpg_engine.core.events import EventBus, Event

class MockEvent(Enum):
    TEST_EVENT = auto()
    OTHER_EVENT = auto()

def test_event_bus_subscribe_publish(event_bus):
    received = []
    def handler(event):
        received.append(event)

    event_bus.subscribe(MockEvent.TEST_EVENT, handler)
    event_bus.publish(MockEvent.TEST_EVENT, data="test")

    assert len(received) == 1
    assert received[0].type == MockEvent.TEST_EVENT
    assert received[0]["data"] == "test"
    assert received[0].get("missing", 3) == 3

def test_event_bus_unsubscribe(event_bus):
    received = []
    def handler(event):
        received.append(event)

    event_bus.subscribe(MockEvent.TEST_EVENT, handler)
    event_bus.unsubscribe(MockEvent.TEST_EVENT, handler)
    event_bus.publish(MockEvent.TEST_EVENT)

    assert len(received) == 0

def test_event_priority(event_bus):
    order = []

    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: order.append("low"), priority=1, weak=False)
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: order.append("high"), priority=10, weak=False)
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: order.append("normal"), priority=5, weak=False)
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: order.append("normal2"), priority=5, weak=False)

    event_bus.publish(MockEvent.TEST_EVENT)

    assert order == ["high", "normal", "normal2", "low"]

def test_event_consumption(event_bus):
    received = []

    def consumer(event):
        received.append("consumer")
        event.consume()

    def later_handler(event):
        received.append("later")

    event_bus.subscribe(MockEvent.TEST_EVENT, consumer, priority=10)
    event_bus.subscribe(MockEvent.TEST_EVENT, later_handler, priority=5)

    event = event_bus.publish(MockEvent.TEST_EVENT)

    assert received == ["consumer"]
    assert event.consumed

def test_one_shot_handler(event_bus):
    received = []
    def handler(event):
        received.append(event)

    event_bus.subscribe(MockEvent.TEST_EVENT, handler, one_shot=True)
    event_bus.publish(MockEvent.TEST_EVENT)
    event_bus.publish(MockEvent.TEST_EVENT)

    assert len(received) == 1
    assert event_bus.handler_count(MockEvent.TEST_EVENT) == 0

def test_weak_handler_is_dropped(event_bus):
    class Listener:
        def __init__(self):
            self.calls = 0
        def on_event(self, event):
            self.calls += 1

    listener = Listener()
    event_bus.subscribe(MockEvent.TEST_EVENT, listener.on_event)
    event_bus.publish(MockEvent.TEST_EVENT)
    assert listener.calls == 1

    del listener
    assert event_bus.handler_count(MockEvent.TEST_EVENT) == 0
    event_bus.publish(MockEvent.TEST_EVENT)

def test_publish_during_dispatch_is_queued(event_bus):
    order = []

    def first(event):
        order.append("first:start")
        event_bus.publish(MockEvent.OTHER_EVENT)
        order.append("first:end")

    def other(event):
        order.append("other")

    event_bus.subscribe(MockEvent.TEST_EVENT, first, weak=False)
    event_bus.subscribe(MockEvent.OTHER_EVENT, other, weak=False)
    event_bus.publish(MockEvent.TEST_EVENT)

    assert order == ["first:start", "first:end", "other"]

def test_handler_exception_does_not_propagate(event_bus, caplog):
    received = []

    def broken(event):
        raise RuntimeError("boom")

    event_bus.subscribe(MockEvent.TEST_EVENT, broken, priority=10, weak=False)
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: received.append(e), weak=False)

    event_bus.publish(MockEvent.TEST_EVENT)

    assert len(received) == 1
    assert "Error in event handler" in caplog.text

def test_publish_prebuilt_event_and_clear(event_bus):
    received = []
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: received.append(e), weak=False)

    event_bus.publish_event(Event(type=MockEvent.TEST_EVENT, data={"x": 1}))
    assert received[0]["x"] == 1

    event_bus.clear()
    event_bus.publish(MockEvent.TEST_EVENT)
    assert len(received) == 1
