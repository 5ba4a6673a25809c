"""Asynchronous tasks of the baking module."""

import structlog
from celery import shared_task

from modules.baking.repositories import BakingDjangoRepository
from modules.baking.services import BakingService
from modules.orders.repositories import OrderDjangoRepository

logger = structlog.get_logger(__name__)


@shared_task(name="baking.sync_tasks")
def sync_baking_tasks():
    """Aggregate orders waiting for the baker into baking tasks.

    Runs on a beat schedule and after order status changes that touch the
    kitchen; repeated runs are harmless.
    """
    service = BakingService(
        baking_repository=BakingDjangoRepository(),
        order_repository=OrderDjangoRepository(),
    )
    result = service.sync_tasks_from_orders()
    logger.info("baking.sync_task_executed", **result.summary())
    return result.summary()
