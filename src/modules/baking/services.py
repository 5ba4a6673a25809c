"""Baking service layer.

Turns orders that wait for the baker into baking tasks, records what the
bakers produce, and manages manual tasks.

Aggregation rules (``sync_tasks_from_orders``):

- Only orders ``in-kitchen`` with kitchen status ``waiting-baker`` feed
  tasks; they are grouped by shape, size and flavor.
- An order attached to a live task that was not cancelled is never
  aggregated again, so repeated runs change nothing.
- An order whose cake spec changed, or that was cancelled or sent back
  out of the kitchen, is removed from its task; a task left without orders
  is cancelled.  Orders that simply moved on in the kitchen stay put.
- A new group joins the active (pending / in-progress) order task with the
  same spec if there is one, otherwise it becomes a new pending task.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.baking.dtos import ManualTaskDTO, ProductionEntryDTO, SyncResultDTO
from modules.baking.exceptions import (
    BakingTaskNotFound,
    InvalidBakingTask,
    InventoryItemNotFound,
)
from modules.baking.models import BakingTaskStatus
from modules.orders.constants import KitchenStatus, OrderStatus

if TYPE_CHECKING:
    from modules.baking.models import BakingTask, CakeInventoryItem, ProductionLogEntry
    from modules.baking.repositories.interfaces import IBakingRepository
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

DEFAULT_CANCEL_REASON = "Cancelled by baker"
ACKNOWLEDGED_NOTE = "Task cancelled and acknowledged by baker"
DELETED_REASON = "Manual task deleted by baker"
DELETED_NOTE = "Task deleted manually"

# Statuses an order may reach after leaving waiting-baker without being
# taken off its baking task.
_ADVANCED_ORDER_STATUSES = frozenset(
    {
        OrderStatus.IN_KITCHEN,
        OrderStatus.WAITING_PHOTO,
        OrderStatus.READY_TO_DELIVER,
        OrderStatus.IN_DELIVERY,
        OrderStatus.DELIVERY_CONFIRMED,
        OrderStatus.WAITING_FEEDBACK,
        OrderStatus.FINISHED,
        OrderStatus.ARCHIVED,
    }
)


def _modified_reason(order_ids: List[str]) -> str:
    plural = "s" if len(order_ids) > 1 else ""
    return f"Order{plural} {', '.join(order_ids)} modified"


class BakingService:
    """Application service for the baker page."""

    def __init__(
        self,
        baking_repository: IBakingRepository,
        order_repository: IOrderRepository,
    ) -> None:
        self._repo = baking_repository
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    @transaction.atomic
    def sync_tasks_from_orders(self, today: Optional[date] = None) -> SyncResultDTO:
        today = today or timezone.localdate()
        waiting = list(
            self._order_repo.list(
                {
                    "status": OrderStatus.IN_KITCHEN,
                    "kitchen_status": KitchenStatus.WAITING_BAKER,
                }
            )
        )
        waiting_by_id: Dict[str, Order] = {str(order.id): order for order in waiting}

        active_tasks = self._repo.list_active_for_update()
        created: List[UUID] = []
        updated: List[UUID] = []
        cancelled: List[UUID] = []

        # 1. Take changed orders off their tasks.
        tracked_ids = {
            str(order_id) for task in active_tasks for order_id in task.order_ids or []
        }
        statuses = self._repo.order_statuses(tracked_ids - set(waiting_by_id))
        for task in active_tasks:
            if not task.order_ids:
                continue
            modified = [
                order_id
                for order_id in map(str, task.order_ids)
                if self._is_modified(task, order_id, waiting_by_id, statuses)
            ]
            if not modified:
                continue
            remaining = [oid for oid in map(str, task.order_ids) if oid not in modified]
            if remaining:
                task.order_ids = remaining
                task.quantity = len(remaining)
                if (
                    task.quantity_completed >= task.quantity
                    and task.can_transition_to(BakingTaskStatus.COMPLETED)
                ):
                    task.status = BakingTaskStatus.COMPLETED
                updated.append(task.id)
            else:
                task.status = BakingTaskStatus.CANCELLED
                task.cancellation_reason = _modified_reason(modified)
                cancelled.append(task.id)
            self._repo.save(task)
            logger.info(
                "baking.task_orders_modified",
                task_id=str(task.id),
                modified_order_ids=modified,
                status=task.status,
            )

        # 2. Group unclaimed waiting orders by cake spec.
        claimed = self._repo.claimed_order_ids()
        groups: Dict[tuple[str, str, str], List[Order]] = defaultdict(list)
        for order_id, order in waiting_by_id.items():
            if order_id in claimed:
                continue
            groups[(order.cake_shape, order.cake_size, order.cake_flavor)].append(order)

        # 3. Merge each group into an active task or open a new one.
        open_tasks = {
            task.spec: task
            for task in reversed(active_tasks)
            if task.is_active and not task.is_manual
        }
        for spec, orders in groups.items():
            order_ids = [str(order.id) for order in orders]
            earliest = min(order.delivery_date for order in orders)
            existing = open_tasks.get(spec)
            if existing is not None:
                combined = list(dict.fromkeys([*map(str, existing.order_ids), *order_ids]))
                existing.order_ids = combined
                existing.quantity = max(existing.quantity, len(combined))
                existing.due_date = min(existing.due_date, earliest)
                existing.is_priority = existing.is_priority or existing.due_date <= today
                self._repo.save(existing)
                if existing.id not in updated:
                    updated.append(existing.id)
                continue
            shape, size, flavor = spec
            task = self._repo.create(
                {
                    "cake_shape": shape,
                    "cake_size": size,
                    "cake_flavor": flavor,
                    "quantity": len(order_ids),
                    "due_date": earliest,
                    "order_ids": order_ids,
                    "is_priority": earliest <= today,
                }
            )
            open_tasks[spec] = task
            created.append(task.id)

        result = SyncResultDTO(created=created, updated=updated, cancelled=cancelled)
        logger.info("baking.sync_completed", **result.summary())
        return result

    @staticmethod
    def _is_modified(
        task: BakingTask,
        order_id: str,
        waiting_by_id: Dict[str, Order],
        statuses: Dict[str, str],
    ) -> bool:
        order = waiting_by_id.get(order_id)
        if order is not None:
            return (order.cake_shape, order.cake_size, order.cake_flavor) != task.spec
        return statuses.get(order_id) not in _ADVANCED_ORDER_STATUSES

    # ------------------------------------------------------------------
    # Production
    # ------------------------------------------------------------------

    @transaction.atomic
    def record_production(self, dto: ProductionEntryDTO) -> ProductionLogEntry:
        """Log baked cakes, update the inventory and the task's progress.

        Raises:
            BakingTaskNotFound: ``task_id`` does not match a live task.
            InvalidBakingTask: the task is completed or cancelled.
        """
        task = None
        spec = (dto.cake_shape, dto.cake_size, dto.cake_flavor)
        if dto.task_id is not None:
            task = self._lock_task(dto.task_id)
            if not task.is_active:
                raise InvalidBakingTask(
                    f"Cannot record production on a {task.status} task."
                )
            spec = task.spec

        shape, size, flavor = spec
        entry = self._repo.add_log_entry(
            {
                "task": task,
                "cake_shape": shape,
                "cake_size": size,
                "cake_flavor": flavor,
                "quantity": dto.quantity,
                "baker": dto.baker,
                "quality_checks": (
                    dto.quality_checks.model_dump() if dto.quality_checks else {}
                ),
                "notes": dto.notes,
                "is_manual": bool(task and task.is_manual),
            }
        )

        if task is not None:
            task.quantity_completed += dto.quantity
            if task.quantity_completed >= task.quantity:
                task.status = BakingTaskStatus.COMPLETED
            elif task.status == BakingTaskStatus.PENDING:
                task.status = BakingTaskStatus.IN_PROGRESS
            if dto.quality_checks:
                task.quality_checks = dto.quality_checks.model_dump()
            self._repo.save(task)

        self._repo.add_to_inventory(shape, size, flavor, dto.quantity)
        return entry

    @transaction.atomic
    def update_inventory(self, item_id: UUID | str, quantity: int) -> CakeInventoryItem:
        """Set the on-hand count after a stock take."""
        if quantity < 0:
            raise InvalidBakingTask("Inventory cannot go below zero.")
        item = self._repo.get_inventory_item_for_update(str(item_id))
        if item is None:
            raise InventoryItemNotFound(f"Inventory item {item_id} not found.")
        item.quantity = quantity
        logger.info("baking.inventory_adjusted", item_id=str(item.id), quantity=quantity)
        return self._repo.save_inventory_item(item)

    # ------------------------------------------------------------------
    # Manual tasks
    # ------------------------------------------------------------------

    def create_manual_task(
        self, dto: ManualTaskDTO, today: Optional[date] = None
    ) -> BakingTask:
        """Create a baker-defined task; it is a priority when due today."""
        today = today or timezone.localdate()
        due_date = dto.due_date or today
        return self._repo.create(
            {
                "cake_shape": dto.cake_shape,
                "cake_size": dto.cake_size,
                "cake_flavor": dto.cake_flavor,
                "height": dto.height,
                "quantity": dto.quantity,
                "due_date": due_date,
                "notes": dto.notes,
                "is_manual": True,
                "is_priority": due_date == today,
            }
        )

    @transaction.atomic
    def cancel_manual_task(self, task_id: UUID | str, reason: str = "") -> BakingTask:
        task = self._lock_task(task_id)
        if not task.is_manual:
            raise InvalidBakingTask("Only manual tasks can be cancelled by the baker.")
        self._set_status(task, BakingTaskStatus.CANCELLED)
        task.cancellation_reason = reason.strip() or DEFAULT_CANCEL_REASON
        return self._repo.save(task)

    @transaction.atomic
    def delete_manual_task(self, task_id: UUID | str) -> ProductionLogEntry:
        task = self._lock_task(task_id)
        if not task.is_manual:
            raise InvalidBakingTask("Only manual tasks can be deleted.")
        entry = self._repo.add_log_entry(
            {
                "task": task,
                "cake_shape": task.cake_shape,
                "cake_size": task.cake_size,
                "cake_flavor": task.cake_flavor,
                "quantity": 0,
                "cancelled": True,
                "cancellation_reason": DELETED_REASON,
                "notes": DELETED_NOTE,
                "is_manual": True,
            }
        )
        self._repo.delete(str(task.id))
        return entry

    @transaction.atomic
    def acknowledge_cancelled_task(
        self, task_id: UUID | str, notes: str = ""
    ) -> ProductionLogEntry:
        """Record that a baker saw a cancelled task and take it off the board."""
        task = self._lock_task(task_id)
        if task.status != BakingTaskStatus.CANCELLED:
            raise InvalidBakingTask("Only cancelled tasks can be acknowledged.")
        entry = self._repo.add_log_entry(
            {
                "task": task,
                "cake_shape": task.cake_shape,
                "cake_size": task.cake_size,
                "cake_flavor": task.cake_flavor,
                "quantity": 0,
                "cancelled": True,
                "cancellation_reason": task.cancellation_reason,
                "notes": notes.strip() or ACKNOWLEDGED_NOTE,
                "is_manual": task.is_manual,
            }
        )
        self._repo.delete(str(task.id))
        return entry

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_task(self, task_id: UUID | str) -> BakingTask:
        task = self._repo.get_by_id(str(task_id))
        if task is None:
            raise BakingTaskNotFound(f"Baking task {task_id} not found.")
        return task

    def list_tasks(self, status: Optional[str] = None) -> Any:
        filters: Dict[str, Any] = {}
        if status and status != "all":
            filters["status"] = status
        return self._repo.list(filters)

    def list_inventory(self) -> Any:
        return self._repo.list_inventory()

    def list_production_log(self) -> Any:
        return self._repo.list_log_entries()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock_task(self, task_id: UUID | str) -> BakingTask:
        task = self._repo.get_for_update(str(task_id))
        if task is None:
            raise BakingTaskNotFound(f"Baking task {task_id} not found.")
        return task

    @staticmethod
    def _set_status(task: BakingTask, target: str) -> None:
        if not task.can_transition_to(target):
            raise InvalidBakingTask(
                f"Cannot move a {task.status} task to {target}."
            )
        task.status = target
