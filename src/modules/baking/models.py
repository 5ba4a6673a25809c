"""Baking models.

- ``BakingTask``: a batch of identical cake bases to bake, aggregated from
  orders waiting for the baker or created manually.
- ``ProductionLogEntry``: what a baker produced (or acknowledged as
  cancelled) against a task.
- ``CakeInventoryItem``: baked bases on hand, one row per shape/size/flavor.
"""

from __future__ import annotations

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel, SoftDeleteModel


class BakingTaskStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    IN_PROGRESS = "in-progress", "In Progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


BAKING_TASK_TRANSITIONS: dict[str, frozenset[str]] = {
    BakingTaskStatus.PENDING: frozenset(
        {
            BakingTaskStatus.IN_PROGRESS,
            BakingTaskStatus.COMPLETED,
            BakingTaskStatus.CANCELLED,
        }
    ),
    BakingTaskStatus.IN_PROGRESS: frozenset(
        {BakingTaskStatus.COMPLETED, BakingTaskStatus.CANCELLED}
    ),
    BakingTaskStatus.COMPLETED: frozenset(),
    BakingTaskStatus.CANCELLED: frozenset(),
}

ACTIVE_TASK_STATUSES: tuple[str, ...] = (
    BakingTaskStatus.PENDING,
    BakingTaskStatus.IN_PROGRESS,
)


class CakeSpecMixin(models.Model):
    cake_shape: models.CharField = models.CharField(max_length=50)
    cake_size: models.CharField = models.CharField(max_length=50)
    cake_flavor: models.CharField = models.CharField(max_length=100)

    class Meta:
        abstract = True

    @property
    def spec(self) -> tuple[str, str, str]:
        return (self.cake_shape, self.cake_size, self.cake_flavor)


class BakingTask(CakeSpecMixin, SoftDeleteModel):
    """Batch of cake bases to bake.

    ``order_ids`` lists the orders the batch was aggregated from; manual
    tasks have none.  Acknowledged or deleted tasks are soft-deleted.
    """

    height: models.CharField = models.CharField(max_length=20, blank=True, default="")
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        validators=[MinValueValidator(1)]
    )
    quantity_completed: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )
    due_date: models.DateField = models.DateField()
    status: models.CharField = models.CharField(
        max_length=20,
        choices=BakingTaskStatus.choices,
        default=BakingTaskStatus.PENDING,
    )
    order_ids: models.JSONField = models.JSONField(default=list, blank=True)
    quality_checks: models.JSONField = models.JSONField(default=dict, blank=True)
    cancellation_reason: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    is_manual: models.BooleanField = models.BooleanField(default=False)
    is_priority: models.BooleanField = models.BooleanField(default=False)
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "baking_tasks"
        ordering = ["-is_priority", "due_date", "created_at"]
        indexes = [
            models.Index(fields=["status"], name="baking_tasks_status_idx"),
        ]

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_TASK_STATUSES

    @property
    def quantity_remaining(self) -> int:
        return max(self.quantity - self.quantity_completed, 0)

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in BAKING_TASK_TRANSITIONS.get(self.status, frozenset())

    def __str__(self) -> str:
        return (
            f"{self.quantity}x {self.cake_shape}/{self.cake_size}/{self.cake_flavor}"
            f" ({self.status})"
        )


class ProductionLogEntry(CakeSpecMixin, BaseModel):
    task: models.ForeignKey = models.ForeignKey(
        BakingTask,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="production_entries",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    completed_at: models.DateTimeField = models.DateTimeField(default=timezone.now)
    baker: models.CharField = models.CharField(max_length=150, blank=True, default="")
    quality_checks: models.JSONField = models.JSONField(default=dict, blank=True)
    notes: models.TextField = models.TextField(blank=True, default="")
    cancelled: models.BooleanField = models.BooleanField(default=False)
    cancellation_reason: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    is_manual: models.BooleanField = models.BooleanField(default=False)

    class Meta:
        db_table = "baking_production_log"
        ordering = ["-completed_at"]

    def __str__(self) -> str:
        state = "cancelled" if self.cancelled else f"{self.quantity} baked"
        return f"{self.cake_shape}/{self.cake_size}/{self.cake_flavor}: {state}"


class CakeInventoryItem(CakeSpecMixin, BaseModel):
    height: models.CharField = models.CharField(max_length=20, blank=True, default="")
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    last_updated: models.DateTimeField = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "baking_inventory"
        ordering = ["cake_shape", "cake_size", "cake_flavor"]
        constraints = [
            models.UniqueConstraint(
                fields=["cake_shape", "cake_size", "cake_flavor"],
                name="baking_inventory_unique_spec",
            )
        ]

    def __str__(self) -> str:
        return f"{self.quantity}x {self.cake_shape}/{self.cake_size}/{self.cake_flavor}"
