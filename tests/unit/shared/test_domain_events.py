"""Domain events registered on aggregates and delivered by the in-memory bus."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.events import OrderCreated, OrderShipped
from modules.orders.models import Order
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


class RecordingHandler:
    def __init__(self):
        self.received = []

    def handle(self, event):
        self.received.append(event)


class ExplodingHandler:
    def handle(self, event):
        raise RuntimeError("handler blew up")


def _created_event(**overrides) -> OrderCreated:
    defaults = {
        "aggregate_id": uuid4(),
        "order_number": "1",
        "buyer_id": "buyer-1",
        "total": Decimal("99.90"),
        "payment_method": PaymentMethod.PIX,
    }
    defaults.update(overrides)
    return OrderCreated(**defaults)


# ===========================================================================
# Aggregate registration
# ===========================================================================


def test_order_registers_and_clears_domain_events():
    order = Order(
        order_number="1", buyer_id="buyer-1", buyer_name="Maria", status=OrderStatus.PENDING
    )

    assert order.domain_events == []

    event = _created_event(aggregate_id=order.id)
    order.add_domain_event(event)

    assert order.domain_events == [event]
    assert event.event_name == "OrderCreated"

    order.clear_domain_events()
    assert order.domain_events == []


def test_payload_is_json_safe():
    event = _created_event(total=Decimal("10.50"))
    payload = event.to_payload()

    assert payload["total"] == "10.50"
    assert payload["aggregate_id"] == str(event.aggregate_id)
    assert isinstance(payload["occurred_on"], str)
    assert payload["event_name"] == "OrderCreated"


# ===========================================================================
# In-memory bus
# ===========================================================================


class TestInMemoryEventBus:
    def test_delivers_only_to_subscribers_of_the_event_type(self):
        bus = InMemoryEventBus()
        created, shipped = RecordingHandler(), RecordingHandler()
        bus.subscribe(OrderCreated, created)
        bus.subscribe(OrderShipped, shipped)

        event = _created_event()
        bus.publish(event)

        assert created.received == [event]
        assert shipped.received == []

    def test_subscribing_twice_delivers_once(self):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(OrderCreated, handler)
        bus.subscribe(OrderCreated, handler)

        bus.publish(_created_event())

        assert len(handler.received) == 1

    def test_failing_handler_does_not_stop_the_others(self):
        bus = InMemoryEventBus()
        survivor = RecordingHandler()
        bus.subscribe(OrderCreated, ExplodingHandler())
        bus.subscribe(OrderCreated, survivor)

        bus.publish_all([_created_event(), _created_event()])

        assert len(survivor.received) == 2

    def test_unsubscribe(self):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(OrderCreated, handler)
        bus.unsubscribe(OrderCreated, handler)

        bus.publish(_created_event())

        assert handler.received == []
        assert bus.handlers_for(OrderCreated) == []
