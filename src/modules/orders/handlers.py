"""Event handlers for Orders domain events.

Handlers run after the surrounding transaction commits (see
``OrderDjangoRepository.save``).
"""

from __future__ import annotations

import structlog

from modules.orders.constants import OrderStatus
from modules.orders.events import (
    DriverAssigned,
    OrderCreated,
    OrderStatusChanged,
    OrderUpdated,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)

# Entering or leaving these statuses changes what the bakers must produce.
_BAKING_RELEVANT = frozenset({OrderStatus.IN_KITCHEN, OrderStatus.CANCELLED})


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info("order.event.created", order_id=str(event.aggregate_id))


class OrderUpdatedHandler(IEventHandler[OrderUpdated]):
    def handle(self, event: OrderUpdated) -> None:
        logger.info("order.event.updated", order_id=str(event.aggregate_id))


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info("order.event.status_changed", **event.as_log_context())
        if {event.old_status, event.new_status} & _BAKING_RELEVANT:
            from modules.baking.tasks import sync_baking_tasks

            sync_baking_tasks.delay()


class DriverAssignedHandler(IEventHandler[DriverAssigned]):
    def handle(self, event: DriverAssigned) -> None:
        logger.info("order.event.driver_assigned", **event.as_log_context())


order_created_handler = OrderCreatedHandler()
order_updated_handler = OrderUpdatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
driver_assigned_handler = DriverAssignedHandler()
