"""Django ORM implementation of the Baking repository.

Soft-deleted tasks are invisible to every read here; ``delete`` soft-deletes.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from modules.baking.models import (
    ACTIVE_TASK_STATUSES,
    BakingTask,
    BakingTaskStatus,
    CakeInventoryItem,
    ProductionLogEntry,
)
from modules.baking.repositories.interfaces import IBakingRepository
from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class BakingDjangoRepository(IBakingRepository):
    """Concrete baking repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> BakingTask:
        task = BakingTask(**data)
        task.full_clean()
        task.save()
        logger.info(
            "baking.task_created",
            task_id=str(task.id),
            spec="/".join(task.spec),
            quantity=task.quantity,
            is_manual=task.is_manual,
        )
        return task

    def get_by_id(self, id: str) -> Optional[BakingTask]:
        try:
            return BakingTask.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[BakingTask]:
        try:
            return BakingTask.objects.alive().select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = BakingTask.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_active_for_update(self) -> List[BakingTask]:
        return list(
            BakingTask.objects.alive()
            .select_for_update()
            .filter(status__in=ACTIVE_TASK_STATUSES)
            .order_by("created_at")
        )

    def claimed_order_ids(self) -> set[str]:
        claimed: set[str] = set()
        rows = (
            BakingTask.objects.alive()
            .exclude(status=BakingTaskStatus.CANCELLED)
            .values_list("order_ids", flat=True)
        )
        for order_ids in rows:
            claimed.update(str(order_id) for order_id in order_ids or [])
        return claimed

    def order_statuses(self, order_ids: Iterable[str]) -> Dict[str, str]:
        ids = list(order_ids)
        if not ids:
            return {}
        return {
            str(pk): status
            for pk, status in Order.objects.filter(id__in=ids).values_list(
                "id", "status"
            )
        }

    @transaction.atomic
    def save(self, entity: BakingTask) -> BakingTask:
        entity.full_clean()
        entity.save()
        logger.info(
            "baking.task_saved",
            task_id=str(entity.id),
            status=entity.status,
            quantity=entity.quantity,
            quantity_completed=entity.quantity_completed,
        )
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        task = self.get_for_update(id)
        if not task:
            return False
        task.delete()
        logger.info("baking.task_removed", task_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Production log / inventory
    # ------------------------------------------------------------------

    def add_log_entry(self, data: Dict[str, Any]) -> ProductionLogEntry:
        entry = ProductionLogEntry.objects.create(**data)
        logger.info(
            "baking.production_logged",
            entry_id=str(entry.id),
            task_id=str(entry.task_id) if entry.task_id else None,
            quantity=entry.quantity,
            cancelled=entry.cancelled,
        )
        return entry

    @transaction.atomic
    def add_to_inventory(
        self, cake_shape: str, cake_size: str, cake_flavor: str, quantity: int
    ) -> CakeInventoryItem:
        item, _created = (
            CakeInventoryItem.objects.select_for_update().get_or_create(
                cake_shape=cake_shape,
                cake_size=cake_size,
                cake_flavor=cake_flavor,
            )
        )
        CakeInventoryItem.objects.filter(id=item.id).update(
            quantity=F("quantity") + quantity, last_updated=timezone.now()
        )
        item.refresh_from_db()
        return item

    def get_inventory_item_for_update(self, id: str) -> Optional[CakeInventoryItem]:
        try:
            return CakeInventoryItem.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def save_inventory_item(self, item: CakeInventoryItem) -> CakeInventoryItem:
        item.last_updated = timezone.now()
        item.full_clean(validate_unique=False)
        item.save()
        return item

    def list_inventory(self) -> QuerySet:
        return CakeInventoryItem.objects.all()

    def list_log_entries(self) -> QuerySet:
        return ProductionLogEntry.objects.select_related("task").all()
