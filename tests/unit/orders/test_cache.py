"""Unit tests for the order payload cache and its invalidation."""

from __future__ import annotations

import pytest

from modules.orders.cache import OrderCache, order_cache
from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.unit


class TestOrderCache:
    def test_get_or_build_builds_once(self):
        cache = OrderCache(timeout=60)
        calls = []

        def build():
            calls.append(1)
            return {"status": "in-queue"}

        assert cache.get_or_build("abc", build) == {"status": "in-queue"}
        assert cache.get_or_build("abc", build) == {"status": "in-queue"}
        assert len(calls) == 1

    def test_invalidate_drops_entry(self):
        cache = OrderCache(timeout=60)
        cache.set("abc", {"status": "in-queue"})
        cache.invalidate("abc")
        assert cache.get("abc") is None

    def test_timeout_defaults_to_setting(self, settings):
        settings.ORDER_CACHE_TIMEOUT = 42
        assert OrderCache().timeout == 42


class TestRepositoryInvalidation:
    def test_transition_invalidates_cached_payload(self, order_service, make_order):
        order = make_order(status=OrderStatus.IN_QUEUE)
        order_cache.set(order.id, {"status": OrderStatus.IN_QUEUE})

        order_service.cancel_order(order.id)

        assert order_cache.get(order.id) is None

    def test_note_invalidates_cached_payload(self, order_service, make_order):
        order = make_order()
        order_cache.set(order.id, {"logs": []})

        order_service.add_note(order.id, "Ring the bell twice")

        assert order_cache.get(order.id) is None

    def test_rejected_transition_keeps_cache(self, order_service, make_order):
        from modules.orders.exceptions import InvalidOrderStatus

        order = make_order(status=OrderStatus.IN_QUEUE)
        order_cache.set(order.id, {"status": OrderStatus.IN_QUEUE})

        with pytest.raises(InvalidOrderStatus):
            order_service.apply_transition(order.id, OrderStatus.WAITING_PHOTO)

        assert order_cache.get(order.id) == {"status": OrderStatus.IN_QUEUE}
