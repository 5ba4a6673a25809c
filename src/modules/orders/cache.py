"""Read-through cache for serialized orders.

Entries are keyed by order id.  Every repository write invalidates the
entry for that order, and the invalidation is repeated once the
transaction commits so a reader racing the write cannot leave a stale
payload behind.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.core.cache import cache

logger = structlog.get_logger(__name__)

_DETAIL_KEY = "orders:detail:{order_id}"


class OrderCache:
    """Typed facade over the Django cache for order payloads."""

    def __init__(self, timeout: Optional[int] = None) -> None:
        self._timeout = timeout

    @property
    def timeout(self) -> int:
        if self._timeout is not None:
            return self._timeout
        return getattr(settings, "ORDER_CACHE_TIMEOUT", 300)

    @staticmethod
    def key(order_id: UUID | str) -> str:
        return _DETAIL_KEY.format(order_id=order_id)

    def get(self, order_id: UUID | str) -> Optional[Dict[str, Any]]:
        return cache.get(self.key(order_id))

    def set(self, order_id: UUID | str, payload: Dict[str, Any]) -> None:
        cache.set(self.key(order_id), payload, self.timeout)

    def get_or_build(
        self, order_id: UUID | str, build: Callable[[], Dict[str, Any]]
    ) -> Dict[str, Any]:
        payload = self.get(order_id)
        if payload is not None:
            logger.debug("order.cache_hit", order_id=str(order_id))
            return payload
        payload = build()
        self.set(order_id, payload)
        return payload

    def invalidate(self, order_id: UUID | str) -> None:
        cache.delete(self.key(order_id))
        logger.debug("order.cache_invalidated", order_id=str(order_id))


order_cache = OrderCache()
