"""Delivery trip repository interface."""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.delivery.models import DeliveryTrip, TripStop


class ITripRepository(IRepository["DeliveryTrip"]):
    @abstractmethod
    def next_trip_number(self, trip_date: date) -> int:
        """Number the next trip of *trip_date* would get (1-based)."""

    @abstractmethod
    def get_stop(self, order_id: str) -> Optional[TripStop]:
        """Stop holding *order_id*, on whichever trip."""

    @abstractmethod
    def add_stop(self, trip: DeliveryTrip, order_id: str, sequence: int) -> TripStop:
        """Put an order on *trip* at *sequence*."""

    @abstractmethod
    def remove_stop(self, stop: TripStop) -> None:
        """Take the stop off its trip and close the gap in the sequence."""

    @abstractmethod
    def planned_order_ids(self, trip_date: date) -> List[str]:
        """Ids of orders already on a trip of *trip_date*."""
