"""Delivery workflow service.

Covers driver assignment (preliminary or confirmed), the delivery status
flow ``ready-to-deliver`` -> ``in-delivery`` -> ``delivery-confirmed`` ->
``waiting-feedback`` -> ``finished``, customer feedback, the delivery
board with its date, status, time-status and slot filters, and the trip
planner that groups a day's orders per driver run.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.delivery.exceptions import InvalidTrip, TripNotFound
from modules.delivery.models import (
    TRIP_ORDER_STATUSES,
    TRIP_STATUS_FLOW,
    DeliveryTrip,
    TripStatus,
)
from modules.orders.constants import (
    DriverType,
    OrderLogType,
    OrderStatus,
    TransitionSource,
)
from modules.orders.dtos import UpdateOrderDTO
from modules.orders.events import DriverAssigned
from modules.orders.exceptions import (
    DriverNotAssigned,
    InvalidDriverAssignment,
    OrderNotFound,
)
from modules.orders.workflow import (
    can_assign_driver,
    get_delivery_assignment,
    get_order_time_status,
    slot_end_hour,
    status_precedes,
)

if TYPE_CHECKING:
    from modules.delivery.dtos import AssignDriverDTO, CreateTripDTO, DeliveryListQuery
    from modules.delivery.repositories.interfaces import ITripRepository
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.services import OrderService

logger = structlog.get_logger(__name__)

DATE_FILTERS = ("today", "tomorrow", "d-plus-2", "all")
STATUS_FILTERS = {
    "ready": (OrderStatus.READY_TO_DELIVER,),
    "in-transit": (OrderStatus.IN_DELIVERY,),
    "all": (OrderStatus.READY_TO_DELIVER, OrderStatus.IN_DELIVERY),
}
_DATE_OFFSETS = {"today": 0, "tomorrow": 1, "d-plus-2": 2}


class DeliveryService:
    """Application service for the delivery page."""

    def __init__(
        self, order_repository: IOrderRepository, order_service: OrderService
    ) -> None:
        self._order_repo = order_repository
        self._orders = order_service

    # ------------------------------------------------------------------
    # Driver assignment
    # ------------------------------------------------------------------

    @transaction.atomic
    def assign_driver(
        self, order_id: UUID | str, dto: AssignDriverDTO, user: str = ""
    ) -> Order:
        """Create or replace the order's driver assignment.

        Assignments made before the cake is ``ready-to-deliver`` are
        preliminary unless the caller says otherwise.

        Raises:
            OrderNotFound: order does not exist.
            InvalidDriverAssignment: the order already left the shop or was
                cancelled.
        """
        order = self._lock(order_id)
        if not can_assign_driver(order):
            raise InvalidDriverAssignment(
                f"Drivers cannot be assigned while the order is {order.status}."
            )

        is_preliminary = dto.is_preliminary
        if is_preliminary is None:
            is_preliminary = status_precedes(order.status, OrderStatus.READY_TO_DELIVER)

        assignment = self._order_repo.save_assignment(
            order,
            {
                "driver_type": dto.driver_type,
                "driver_name": (
                    dto.driver_name if dto.driver_type == DriverType.THIRD_PARTY else ""
                ),
                "vehicle_info": dto.vehicle_info,
                "notes": dto.notes,
                "is_preliminary": is_preliminary,
                "assigned_at": timezone.now(),
            },
        )
        verb = "Pre-assigned" if is_preliminary else "Assigned"
        self._order_repo.add_log(
            order.id,
            OrderLogType.DRIVER_ASSIGNED,
            note=f"{verb} to {assignment.display_name}",
            user=user,
            metadata={
                "driver_type": assignment.driver_type,
                "is_preliminary": is_preliminary,
            },
        )
        order.add_domain_event(
            DriverAssigned(aggregate_id=order.id, is_preliminary=is_preliminary)
        )
        self._order_repo.save(order)
        logger.info(
            "delivery.driver_assigned",
            order_id=str(order.id),
            driver_type=assignment.driver_type,
            is_preliminary=is_preliminary,
        )
        return self._refresh(order)

    @transaction.atomic
    def confirm_assignment(self, order_id: UUID | str, user: str = "") -> Order:
        """Turn a preliminary assignment into a confirmed one."""
        order = self._lock(order_id)
        assignment = get_delivery_assignment(order)
        if assignment is None:
            raise DriverNotAssigned(f"Order {order.order_number} has no driver.")
        if not assignment.is_preliminary:
            return self._refresh(order)

        self._order_repo.save_assignment(order, {"is_preliminary": False})
        self._order_repo.add_log(
            order.id,
            OrderLogType.DRIVER_ASSIGNED,
            note=f"Assigned to {assignment.display_name}",
            user=user,
            metadata={"driver_type": assignment.driver_type, "is_preliminary": False},
        )
        order.add_domain_event(DriverAssigned(aggregate_id=order.id))
        self._order_repo.save(order)
        logger.info("delivery.assignment_confirmed", order_id=str(order.id))
        return self._refresh(order)

    @transaction.atomic
    def unassign_driver(self, order_id: UUID | str, user: str = "") -> Order:
        order = self._lock(order_id)
        assignment = get_delivery_assignment(order)
        if assignment is None:
            raise DriverNotAssigned(f"Order {order.order_number} has no driver.")
        if not can_assign_driver(order):
            raise InvalidDriverAssignment(
                f"The driver cannot be removed while the order is {order.status}."
            )
        display_name = assignment.display_name
        assignment.delete()
        self._order_repo.add_log(
            order.id,
            OrderLogType.DRIVER_ASSIGNED,
            note=f"Unassigned {display_name}",
            user=user,
        )
        logger.info("delivery.driver_unassigned", order_id=str(order.id))
        return self._refresh(order)

    # ------------------------------------------------------------------
    # Delivery status flow
    # ------------------------------------------------------------------

    def start_delivery(self, order_id: UUID | str, user: str = "") -> Order:
        """``ready-to-deliver`` -> ``in-delivery``; needs a driver."""
        order = self._get(order_id)
        if get_delivery_assignment(order) is None:
            raise DriverNotAssigned(
                f"Assign a driver before order {order.order_number} leaves."
            )
        return self._orders.apply_transition(
            order.id,
            OrderStatus.IN_DELIVERY,
            source=TransitionSource.DELIVERY,
            user=user,
            note="Out for delivery",
        )

    def confirm_delivery(
        self, order_id: UUID | str, user: str = "", note: str = ""
    ) -> Order:
        return self._orders.apply_transition(
            order_id,
            OrderStatus.DELIVERY_CONFIRMED,
            source=TransitionSource.DELIVERY,
            user=user,
            note=note or "Delivery confirmed",
        )

    def request_feedback(self, order_id: UUID | str, user: str = "") -> Order:
        return self._orders.apply_transition(
            order_id,
            OrderStatus.WAITING_FEEDBACK,
            source=TransitionSource.DELIVERY,
            user=user,
            note="Waiting for customer feedback",
        )

    def record_feedback(
        self, order_id: UUID | str, feedback: str, user: str = ""
    ) -> Order:
        """Store customer feedback; a waiting-feedback order then finishes."""
        return self._orders.update_order(
            order_id, UpdateOrderDTO(customer_feedback=feedback), user=user
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_deliveries(
        self, query: DeliveryListQuery, now: Optional[datetime] = None
    ) -> List[Order]:
        """Orders on the delivery board, soonest delivery window first."""
        now = timezone.localtime(now or timezone.now())
        today = now.date()

        queryset = self._order_repo.list(
            {"status__in": list(STATUS_FILTERS[query.status_filter])}
        )
        if query.date_filter in _DATE_OFFSETS:
            queryset = queryset.filter(
                delivery_date=today + timedelta(days=_DATE_OFFSETS[query.date_filter])
            )
        if query.slot:
            queryset = queryset.filter(delivery_time_slot=query.slot)

        orders = list(queryset)
        if query.time_status:
            orders = [
                order
                for order in orders
                if get_order_time_status(order, now=now) == query.time_status
            ]
        orders.sort(
            key=lambda order: (
                order.delivery_date,
                slot_end_hour(order.delivery_time_slot),
                order.created_at,
            )
        )
        return orders

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get(self, order_id: UUID | str) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _lock(self, order_id: UUID | str) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _refresh(self, order: Order) -> Order:
        return self._order_repo.get_by_id(str(order.id)) or order


class TripService:
    """Delivery trip planner.

    Groups the orders of one delivery date into numbered trips, one
    driver each.  An order rides on at most one trip and only while it is
    ready, on the road or waiting for feedback.  Stops keep a gap-free
    1-based sequence.
    """

    def __init__(
        self, trip_repository: ITripRepository, order_repository: IOrderRepository
    ) -> None:
        self._trip_repo = trip_repository
        self._order_repo = order_repository

    @transaction.atomic
    def create_trip(self, dto: CreateTripDTO) -> DeliveryTrip:
        return self._trip_repo.create(
            {
                "name": dto.name,
                "driver_type": dto.driver_type,
                "driver_name": (
                    dto.driver_name if dto.driver_type == DriverType.THIRD_PARTY else ""
                ),
                "trip_date": dto.trip_date,
                "trip_number": self._trip_repo.next_trip_number(dto.trip_date),
                "notes": dto.notes,
            }
        )

    def get_trip(self, trip_id: UUID | str) -> DeliveryTrip:
        trip = self._trip_repo.get_by_id(str(trip_id))
        if not trip:
            raise TripNotFound(f"Trip {trip_id} not found.")
        return trip

    def list_trips(
        self, trip_date: Optional[date] = None, driver_type: Optional[str] = None
    ):
        filters = {}
        if trip_date:
            filters["trip_date"] = trip_date
        if driver_type:
            filters["driver_type"] = driver_type
        return self._trip_repo.list(filters)

    def unassigned_orders(self, trip_date: date) -> List[Order]:
        """Orders of *trip_date* the planner can still put on a trip."""
        queryset = self._order_repo.list(
            {"delivery_date": trip_date, "status__in": list(TRIP_ORDER_STATUSES)}
        ).exclude(id__in=self._trip_repo.planned_order_ids(trip_date))
        return sorted(
            queryset,
            key=lambda order: (slot_end_hour(order.delivery_time_slot), order.created_at),
        )

    @transaction.atomic
    def add_order(
        self, trip_id: UUID | str, order_id: UUID | str, user: str = ""
    ) -> DeliveryTrip:
        """Append an order to the end of the trip.

        Raises:
            TripNotFound: trip does not exist.
            OrderNotFound: order does not exist.
            InvalidTrip: the trip is completed, or the order is on another
                date, in a status the planner ignores, or already on a trip.
        """
        trip = self._lock(trip_id)
        if trip.status == TripStatus.COMPLETED:
            raise InvalidTrip("A completed trip cannot take more orders.")

        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        if order.delivery_date != trip.trip_date:
            raise InvalidTrip(
                f"Order {order.order_number} is delivered on {order.delivery_date}, "
                f"not {trip.trip_date}."
            )
        if order.status not in TRIP_ORDER_STATUSES:
            raise InvalidTrip(
                f"Order {order.order_number} cannot go on a trip while {order.status}."
            )
        if self._trip_repo.get_stop(str(order.id)):
            raise InvalidTrip(f"Order {order.order_number} is already on a trip.")

        stop = self._trip_repo.add_stop(trip, str(order.id), trip.stops.count() + 1)
        self._order_repo.add_log(
            order.id,
            OrderLogType.DELIVERY_UPDATE,
            note=f"Added to trip {trip.trip_number} ({trip.name})",
            user=user,
            metadata={"trip_id": str(trip.id), "sequence": stop.sequence},
        )
        logger.info(
            "delivery.trip_order_added",
            trip_id=str(trip.id),
            order_id=str(order.id),
            sequence=stop.sequence,
        )
        return self.get_trip(trip.id)

    @transaction.atomic
    def remove_order(
        self, trip_id: UUID | str, order_id: UUID | str, user: str = ""
    ) -> DeliveryTrip:
        trip = self._lock(trip_id)
        if trip.status == TripStatus.COMPLETED:
            raise InvalidTrip("Orders cannot leave a completed trip.")
        stop = self._trip_repo.get_stop(str(order_id))
        if stop is None or stop.trip_id != trip.id:
            raise OrderNotFound(f"Order {order_id} is not on trip {trip.trip_number}.")

        self._trip_repo.remove_stop(stop)
        self._order_repo.add_log(
            stop.order_id,
            OrderLogType.DELIVERY_UPDATE,
            note=f"Removed from trip {trip.trip_number} ({trip.name})",
            user=user,
            metadata={"trip_id": str(trip.id)},
        )
        logger.info(
            "delivery.trip_order_removed", trip_id=str(trip.id), order_id=str(order_id)
        )
        return self.get_trip(trip.id)

    @transaction.atomic
    def set_status(self, trip_id: UUID | str, status: str) -> DeliveryTrip:
        """Move the trip along ``planned`` -> ``in-progress`` -> ``completed``.

        Starting a trip stamps its departure time.
        """
        trip = self._lock(trip_id)
        if status == trip.status:
            return self.get_trip(trip.id)
        if status not in TRIP_STATUS_FLOW[TripStatus(trip.status)]:
            raise InvalidTrip(f"Trip cannot go from {trip.status} to {status}.")

        trip.status = status
        if status == TripStatus.IN_PROGRESS:
            trip.departure_time = timezone.now()
        self._trip_repo.save(trip)
        return self.get_trip(trip.id)

    @transaction.atomic
    def delete_trip(self, trip_id: UUID | str) -> None:
        """Drop a trip that has not left yet; its orders become unassigned."""
        trip = self._lock(trip_id)
        if trip.status != TripStatus.PLANNED:
            raise InvalidTrip("Only planned trips can be deleted.")
        self._trip_repo.delete(str(trip.id))

    def _lock(self, trip_id: UUID | str) -> DeliveryTrip:
        trip = self._trip_repo.get_for_update(str(trip_id))
        if not trip:
            raise TripNotFound(f"Trip {trip_id} not found.")
        return trip
