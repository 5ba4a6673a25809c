"""Delivery trip planner tables.

A trip bundles the orders one driver takes out on a single run.  Trips
are numbered per delivery date and each order sits on at most one trip.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import DriverType, OrderStatus


class TripStatus(models.TextChoices):
    PLANNED = "planned", "Planned"
    IN_PROGRESS = "in-progress", "In progress"
    COMPLETED = "completed", "Completed"


TRIP_STATUS_FLOW = {
    TripStatus.PLANNED: (TripStatus.IN_PROGRESS,),
    TripStatus.IN_PROGRESS: (TripStatus.COMPLETED,),
    TripStatus.COMPLETED: (),
}

# Orders the planner may put on a trip.
TRIP_ORDER_STATUSES = (
    OrderStatus.READY_TO_DELIVER,
    OrderStatus.IN_DELIVERY,
    OrderStatus.WAITING_FEEDBACK,
)


class DeliveryTrip(BaseModel):
    name: models.CharField = models.CharField(max_length=255)
    driver_type: models.CharField = models.CharField(
        max_length=20, choices=DriverType.choices
    )
    # Only kept for third-party couriers.
    driver_name: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    trip_date: models.DateField = models.DateField(db_index=True)
    trip_number: models.PositiveIntegerField = models.PositiveIntegerField()
    status: models.CharField = models.CharField(
        max_length=20, choices=TripStatus.choices, default=TripStatus.PLANNED
    )
    departure_time: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "delivery_trips"
        ordering = ["trip_date", "trip_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["trip_date", "trip_number"], name="uniq_trip_number_per_day"
            )
        ]

    def __str__(self) -> str:
        return f"Trip {self.trip_number} {self.trip_date} ({self.name})"


class TripStop(BaseModel):
    trip: models.ForeignKey = models.ForeignKey(
        DeliveryTrip, on_delete=models.CASCADE, related_name="stops"
    )
    order: models.OneToOneField = models.OneToOneField(
        "orders.Order", on_delete=models.CASCADE, related_name="trip_stop"
    )
    sequence: models.PositiveIntegerField = models.PositiveIntegerField()

    class Meta:
        db_table = "delivery_trip_stops"
        ordering = ["sequence"]

    def __str__(self) -> str:
        return f"{self.trip} #{self.sequence}: {self.order_id}"
