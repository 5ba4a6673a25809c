"""Order aggregate models.

- ``Order``: the cake order, its lifecycle status and kitchen sub-status.
- ``DeliveryAssignment``: one driver assignment per order, preliminary or
  confirmed.
- ``OrderLog``: append-only event log (status changes, prints, driver
  assignments, revisions, notes).
- ``PrintEvent``: print history of order forms and delivery labels.
- ``CakeRevision``: revision requests raised when a cake photo is rejected.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    KITCHEN_STATUSES,
    ORDER_NUMBER_MAX_RETRIES,
    TERMINAL_STATES,
    DriverType,
    KitchenStatus,
    OrderLogType,
    OrderStatus,
    PrintType,
)
from modules.orders.workflow import can_transition, status_precedes
from shared.domain.events import DomainEventMixin


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier auto-generated on first
    save (format: ``ORD-YYYYMMDD-XXXXXX``).  The UUIDv7 ``id`` is used for
    all internal references and API lookups.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )

    # Customer snapshot, copied from ``customer`` when an order is placed for a
    # saved customer and never rewritten by later customer edits.
    customer: models.ForeignKey = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    customer_name: models.CharField = models.CharField(max_length=255)
    customer_phone: models.CharField = models.CharField(
        max_length=32, blank=True, default=""
    )

    # Delivery
    delivery_date: models.DateField = models.DateField()
    delivery_time_slot: models.CharField = models.CharField(
        max_length=64, blank=True, default=""
    )
    delivery_address: models.TextField = models.TextField(blank=True, default="")
    delivery_area: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )

    # Cake
    cake_shape: models.CharField = models.CharField(max_length=50)
    cake_size: models.CharField = models.CharField(max_length=50)
    cake_flavor: models.CharField = models.CharField(max_length=100)
    cake_tier: models.PositiveSmallIntegerField = models.PositiveSmallIntegerField(
        default=1, validators=[MinValueValidator(1)]
    )
    cake_design: models.TextField = models.TextField(blank=True, default="")
    cake_text: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    tier_details: models.JSONField = models.JSONField(default=list, blank=True)
    notes: models.TextField = models.TextField(blank=True, default="")
    total_price: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    # Workflow
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.INCOMPLETE,
    )
    kitchen_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=30,
        choices=KitchenStatus.choices,
        null=True,
        blank=True,
    )

    # Side-effect fields written by transitions
    revision_count: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )
    archived_date: models.DateTimeField = models.DateTimeField(
        null=True, blank=True, default=None
    )
    actual_delivery_time: models.DateTimeField = models.DateTimeField(
        null=True, blank=True, default=None
    )
    customer_feedback: models.TextField = models.TextField(blank=True, default="")
    finished_cake_photos: models.JSONField = models.JSONField(default=list, blank=True)
    tags: models.JSONField = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["delivery_date", "-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["delivery_date"], name="orders_delivery_date_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Generic-policy check for *new_status* (see ``workflow.can_transition``)."""
        return can_transition(self.status, new_status)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.kitchen_status and self.status not in KITCHEN_STATUSES:
            raise ValidationError(
                {
                    "kitchen_status": (
                        f"Kitchen status is only meaningful while in the kitchen "
                        f"(status is {self.status})."
                    )
                }
            )

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _attempt in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class DeliveryAssignment(BaseModel):
    """Driver assigned to an order.

    A preliminary assignment is a planning aid made before the cake is
    ready; confirming it flips ``is_preliminary`` on the same row.
    """

    order: models.OneToOneField = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="delivery_assignment",
    )
    driver_type: models.CharField = models.CharField(
        max_length=20, choices=DriverType.choices
    )
    driver_name: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    vehicle_info: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    notes: models.TextField = models.TextField(blank=True, default="")
    is_preliminary: models.BooleanField = models.BooleanField(default=False)
    assigned_at: models.DateTimeField = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "order_delivery_assignments"

    def clean(self) -> None:
        super().clean()
        if self.is_preliminary and not status_precedes(
            self.order.status, OrderStatus.IN_DELIVERY
        ):
            raise ValidationError(
                {"is_preliminary": "Assignment must be confirmed once in delivery."}
            )

    @property
    def display_name(self) -> str:
        if self.driver_type == DriverType.THIRD_PARTY and self.driver_name:
            return f"{self.get_driver_type_display()} ({self.driver_name})"
        return self.get_driver_type_display()

    def __str__(self) -> str:
        state = "preliminary" if self.is_preliminary else "confirmed"
        return f"{self.order} -> {self.display_name} [{state}]"


class OrderLog(BaseModel):
    """Append-only order event log.

    Rows are written once and never edited or deleted; ``save`` refuses
    updates and ``delete`` always raises.  ``user`` is a display name,
    empty for system-generated entries.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="logs",
    )
    timestamp: models.DateTimeField = models.DateTimeField(default=timezone.now)
    type: models.CharField = models.CharField(
        max_length=20, choices=OrderLogType.choices
    )
    previous_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    note: models.TextField = models.TextField(blank=True, default="")
    user: models.CharField = models.CharField(max_length=150, blank=True, default="")
    metadata: models.JSONField = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "order_logs"
        ordering = ["timestamp", "created_at"]
        indexes = [
            models.Index(fields=["order", "timestamp"], name="order_logs_order_ts_idx"),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise ValidationError("Order log entries are append-only.")
        super().save(*args, **kwargs)

    def delete(self, using=None, keep_parents=False):
        raise ValidationError("Order log entries are append-only.")

    def __str__(self) -> str:
        if self.type == OrderLogType.STATUS_CHANGE:
            return f"{self.order_id}: {self.previous_status} -> {self.new_status}"
        return f"{self.order_id}: {self.type}"


class PrintEvent(BaseModel):
    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="print_history",
    )
    type: models.CharField = models.CharField(max_length=20, choices=PrintType.choices)
    timestamp: models.DateTimeField = models.DateTimeField(default=timezone.now)
    user: models.CharField = models.CharField(max_length=150, blank=True, default="")

    class Meta:
        db_table = "order_print_history"
        ordering = ["-timestamp"]

    def __str__(self) -> str:
        return f"{self.order_id}: printed {self.type}"


class CakeRevision(BaseModel):
    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="revisions",
    )
    timestamp: models.DateTimeField = models.DateTimeField(default=timezone.now)
    notes: models.TextField = models.TextField()
    photos: models.JSONField = models.JSONField(default=list, blank=True)
    requested_by: models.CharField = models.CharField(
        max_length=150, blank=True, default=""
    )

    class Meta:
        db_table = "order_revision_history"
        ordering = ["timestamp"]

    def __str__(self) -> str:
        return f"{self.order_id}: revision at {self.timestamp:%Y-%m-%d %H:%M}"
