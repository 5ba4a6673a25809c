"""Django ORM implementation of the trip repository."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, Max, QuerySet

from modules.delivery.models import DeliveryTrip, TripStop
from modules.delivery.repositories.interfaces import ITripRepository

logger = structlog.get_logger(__name__)


class TripDjangoRepository(ITripRepository):
    """Concrete trip repository backed by Django ORM."""

    def _base_queryset(self) -> QuerySet:
        return DeliveryTrip.objects.prefetch_related("stops__order")

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> DeliveryTrip:
        trip = DeliveryTrip(**data)
        trip.full_clean()
        trip.save()
        logger.info(
            "delivery.trip_created",
            trip_id=str(trip.id),
            trip_date=str(trip.trip_date),
            trip_number=trip.trip_number,
        )
        return trip

    def get_by_id(self, id: str) -> Optional[DeliveryTrip]:
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[DeliveryTrip]:
        try:
            return DeliveryTrip.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: DeliveryTrip) -> DeliveryTrip:
        entity.full_clean()
        entity.save()
        logger.info("delivery.trip_saved", trip_id=str(entity.id), status=entity.status)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        deleted, _ = DeliveryTrip.objects.filter(id=id).delete()
        if deleted:
            logger.info("delivery.trip_deleted", trip_id=str(id))
        return bool(deleted)

    def next_trip_number(self, trip_date: date) -> int:
        current = DeliveryTrip.objects.filter(trip_date=trip_date).aggregate(
            highest=Max("trip_number")
        )["highest"]
        return (current or 0) + 1

    def get_stop(self, order_id: str) -> Optional[TripStop]:
        try:
            return TripStop.objects.select_related("trip").filter(order_id=order_id).first()
        except (ValueError, ValidationError):
            return None

    def add_stop(self, trip: DeliveryTrip, order_id: str, sequence: int) -> TripStop:
        return TripStop.objects.create(trip=trip, order_id=order_id, sequence=sequence)

    @transaction.atomic
    def remove_stop(self, stop: TripStop) -> None:
        TripStop.objects.filter(trip_id=stop.trip_id, sequence__gt=stop.sequence).update(
            sequence=F("sequence") - 1
        )
        stop.delete()

    def planned_order_ids(self, trip_date: date) -> List[str]:
        return [
            str(order_id)
            for order_id in TripStop.objects.filter(trip__trip_date=trip_date).values_list(
                "order_id", flat=True
            )
        ]
