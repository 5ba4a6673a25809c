"""Kitchen workflow service.

Drives orders through production: ``in-queue`` -> ``in-kitchen``
(waiting-baker, waiting-crumbcoat, waiting-cover, decorating) ->
``waiting-photo`` (done, waiting approval) -> ``ready-to-deliver``, and the
revision loop back to decorating when a cake photo is rejected.

Every order-status change is delegated to ``OrderService.apply_transition``
with the kitchen source; moves between kitchen sub-statuses that keep the
order status are written here directly.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import (
    KITCHEN_SEQUENCE,
    KITCHEN_STATUSES,
    KitchenStatus,
    OrderLogType,
    OrderStatus,
    TransitionSource,
)
from modules.orders.exceptions import (
    InvalidKitchenStatus,
    OrderNotFound,
    RevisionNotesRequired,
)
from modules.orders.workflow import (
    derive_kitchen_status,
    kitchen_status_to_order_status,
    next_kitchen_status,
    normalize_kitchen_status,
)

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.services import OrderService

logger = structlog.get_logger(__name__)

QUEUE_TIME_FILTERS = ("all", "today", "tomorrow", "this-week")


class KitchenService:
    """Application service for the kitchen leader's board."""

    def __init__(
        self, order_repository: IOrderRepository, order_service: OrderService
    ) -> None:
        self._order_repo = order_repository
        self._orders = order_service

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_production(self, order_id: UUID | str, user: str = "") -> Order:
        """Take a queued order into the kitchen at ``waiting-baker``."""
        order = self._get(order_id)
        if order.status != OrderStatus.IN_QUEUE:
            raise InvalidKitchenStatus(
                f"Only queued orders can start production (status is {order.status})."
            )
        return self._orders.apply_transition(
            order.id,
            OrderStatus.IN_KITCHEN,
            source=TransitionSource.KITCHEN,
            user=user,
            note="Production started",
            kitchen_status=KitchenStatus.WAITING_BAKER,
        )

    def advance(self, order_id: UUID | str, user: str = "") -> Order:
        """Move the order to the next kitchen sub-status."""
        order = self._get(order_id)
        if order.status not in KITCHEN_STATUSES:
            raise InvalidKitchenStatus(
                f"Order is not in the kitchen (status is {order.status})."
            )
        current = derive_kitchen_status(order)
        target = next_kitchen_status(current)
        if target is None:
            raise InvalidKitchenStatus(
                "The cake is done; approve the photo or request a revision."
            )
        return self.set_kitchen_status(order.id, target, user=user)

    @transaction.atomic
    def set_kitchen_status(
        self, order_id: UUID | str, kitchen_status: str, user: str = ""
    ) -> Order:
        """Jump to any kitchen sub-status from the kitchen status dropdown.

        Sub-statuses that map onto a different order status go through the
        transition executor; the rest only rewrite ``kitchen_status``.
        """
        kitchen_status = normalize_kitchen_status(kitchen_status)
        if kitchen_status not in KITCHEN_SEQUENCE:
            raise InvalidKitchenStatus(f"Unknown kitchen status {kitchen_status!r}.")

        order = self._lock(order_id)
        if order.status not in (OrderStatus.IN_QUEUE, *KITCHEN_STATUSES):
            raise InvalidKitchenStatus(
                f"Kitchen status cannot change while the order is {order.status}."
            )

        target = kitchen_status_to_order_status(kitchen_status)
        if target != order.status:
            return self._orders.apply_transition(
                order.id,
                target,
                source=TransitionSource.KITCHEN,
                user=user,
                note=f"Kitchen status set to {kitchen_status}",
                kitchen_status=kitchen_status,
            )

        previous = derive_kitchen_status(order)
        if previous == kitchen_status:
            return self._order_repo.get_by_id(str(order.id)) or order

        order.kitchen_status = kitchen_status
        self._order_repo.save(order)
        self._order_repo.add_log(
            order.id,
            OrderLogType.NOTE,
            note=f"Kitchen status: {previous} -> {kitchen_status}",
            user=user,
            metadata={
                "previous_kitchen_status": previous,
                "kitchen_status": kitchen_status,
            },
        )
        logger.info(
            "kitchen.status_updated",
            order_id=str(order.id),
            previous_kitchen_status=previous,
            kitchen_status=kitchen_status,
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def approve_photo(
        self,
        order_id: UUID | str,
        photos: Optional[List[str]] = None,
        user: str = "",
    ) -> Order:
        """Approve the finished cake: ``waiting-photo`` -> ``ready-to-deliver``."""
        order = self._lock(order_id)
        if order.status != OrderStatus.WAITING_PHOTO:
            raise InvalidKitchenStatus(
                f"No cake photo awaits approval (status is {order.status})."
            )
        if photos:
            order.finished_cake_photos = list(photos)
            self._order_repo.save(order)
        logger.info("kitchen.photo_approved", order_id=str(order.id))
        return self._orders.apply_transition(
            order.id,
            OrderStatus.READY_TO_DELIVER,
            source=TransitionSource.KITCHEN,
            user=user,
            note="Cake photos approved",
        )

    @transaction.atomic
    def request_revision(
        self,
        order_id: UUID | str,
        notes: str,
        photos: Optional[List[str]] = None,
        user: str = "",
    ) -> Order:
        """Reject the cake photo and send the order back to decorating.

        Raises:
            RevisionNotesRequired: *notes* is blank.
            InvalidKitchenStatus: the order is not waiting for approval.
        """
        notes = (notes or "").strip()
        if not notes:
            raise RevisionNotesRequired(
                "Please explain what needs to be fixed in the cake."
            )
        order = self._lock(order_id)
        if order.status != OrderStatus.WAITING_PHOTO:
            raise InvalidKitchenStatus(
                f"No cake photo awaits approval (status is {order.status})."
            )

        self._order_repo.add_revision(
            order.id,
            notes,
            photos=photos or list(order.finished_cake_photos),
            requested_by=user,
        )
        order.revision_count += 1
        self._order_repo.save(order)
        self._order_repo.add_log(
            order.id,
            OrderLogType.REVISION,
            note=notes,
            user=user,
            metadata={"revision_count": order.revision_count},
        )
        logger.info(
            "kitchen.revision_requested",
            order_id=str(order.id),
            revision_count=order.revision_count,
        )
        return self._orders.apply_transition(
            order.id,
            OrderStatus.IN_KITCHEN,
            source=TransitionSource.KITCHEN,
            user=user,
            note=f"Revision requested: {notes}",
            kitchen_status=KitchenStatus.DECORATING,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def board(
        self, time_filter: str = "all", today: Optional[date] = None
    ) -> Dict[str, List[Order]]:
        """Production queue plus in-kitchen orders grouped by kitchen status.

        *time_filter* (``all``, ``today``, ``tomorrow``, ``this-week``) only
        narrows the queue column.
        """
        today = today or timezone.localdate()
        columns: Dict[str, List[Order]] = {"queue": []}
        columns.update({status: [] for status in KITCHEN_SEQUENCE})

        queue = self._order_repo.list({"status": OrderStatus.IN_QUEUE})
        window = _queue_window(time_filter, today)
        if window is not None:
            start, end = window
            queue = queue.filter(delivery_date__gte=start, delivery_date__lte=end)
        columns["queue"] = list(queue.order_by("delivery_date", "created_at"))

        in_kitchen = self._order_repo.list({"status__in": sorted(KITCHEN_STATUSES)})
        for order in in_kitchen.order_by("delivery_date", "created_at"):
            columns[derive_kitchen_status(order)].append(order)
        return columns

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


def _queue_window(time_filter: str, today: date) -> Optional[tuple[date, date]]:
    if time_filter == "today":
        return today, today
    if time_filter == "tomorrow":
        tomorrow = today + timedelta(days=1)
        return tomorrow, tomorrow
    if time_filter == "this-week":
        return today, today + timedelta(days=6)
    return None
