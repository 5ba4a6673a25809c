"""Unit tests for domain events and the in-memory event bus."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.events import OrderCreated, OrderStatusChanged
from modules.orders.models import Order
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


class _Recorder:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


def test_order_registers_and_pops_domain_events():
    order = Order(
        customer_name="Dimas Pratama",
        status=OrderStatus.IN_QUEUE,
        cake_shape="round",
        cake_size="16cm",
        cake_flavor="pandan",
    )

    assert order.domain_events == []

    event = OrderCreated(aggregate_id=order.id)
    order.add_domain_event(event)

    assert order.domain_events == [event]
    assert event.event_name == "OrderCreated"

    assert order.pop_domain_events() == [event]
    assert order.domain_events == []


def test_event_ids_are_uuid7():
    event = OrderCreated(aggregate_id=uuid4())
    assert event.event_id.version == 7


def test_log_context_is_flat_and_stringified():
    aggregate_id = uuid4()
    event = OrderStatusChanged(
        aggregate_id=aggregate_id,
        old_status=OrderStatus.IN_QUEUE,
        new_status=OrderStatus.IN_KITCHEN,
    )

    context = event.as_log_context()

    assert context["aggregate_id"] == str(aggregate_id)
    assert context["event_name"] == "OrderStatusChanged"
    assert context["new_status"] == OrderStatus.IN_KITCHEN
    assert isinstance(context["occurred_on"], str)


class TestInMemoryEventBus:
    def test_publish_reaches_subscribed_handlers_only(self):
        bus = InMemoryEventBus()
        created, changed = _Recorder(), _Recorder()
        bus.subscribe(OrderCreated, created)
        bus.subscribe(OrderStatusChanged, changed)

        event = OrderCreated(aggregate_id=uuid4())
        bus.publish(event)

        assert created.events == [event]
        assert changed.events == []

    def test_subscribe_is_idempotent(self):
        bus = InMemoryEventBus()
        recorder = _Recorder()
        bus.subscribe(OrderCreated, recorder)
        bus.subscribe(OrderCreated, recorder)

        bus.publish(OrderCreated(aggregate_id=uuid4()))

        assert len(recorder.events) == 1

    def test_unsubscribe(self):
        bus = InMemoryEventBus()
        recorder = _Recorder()
        bus.subscribe(OrderCreated, recorder)
        bus.unsubscribe(OrderCreated, recorder)

        bus.publish(OrderCreated(aggregate_id=uuid4()))

        assert recorder.events == []
        assert bus.handlers_for(OrderCreated) == []

    def test_handler_errors_propagate(self):
        class Failing:
            def handle(self, event):
                raise RuntimeError("boom")

        bus = InMemoryEventBus()
        bus.subscribe(OrderCreated, Failing())

        with pytest.raises(RuntimeError):
            bus.publish(OrderCreated(aggregate_id=uuid4()))

    def test_orders_app_subscribes_its_handlers(self):
        from modules.orders.handlers import order_status_changed_handler
        from shared.infrastructure.bus import event_bus

        assert order_status_changed_handler in event_bus.handlers_for(OrderStatusChanged)
