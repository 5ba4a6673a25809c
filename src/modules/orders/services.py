"""Order service layer (Use Cases).

Orchestrates order creation, partial updates and every status change.
All write operations are atomic: the service defines the unit-of-work
boundary and locks the order row before deciding anything.

``apply_transition`` is the single executor for status changes.  The
generic edit form, the kitchen workflow, the delivery workflow and the
auto-finish guard all go through it, so side effects and log entries are
written the same way whichever page triggered the change.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional
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
    PrintType,
    TransitionSource,
)
from modules.customers.exceptions import CustomerNotFound
from modules.orders.events import OrderCreated, OrderStatusChanged, OrderUpdated
from modules.orders.exceptions import (
    InvalidKitchenStatus,
    InvalidOrderStatus,
    OrderNotFound,
)
from modules.orders.models import DeliveryAssignment
from modules.orders.workflow import (
    allowed_targets,
    can_apply_transition,
    kitchen_status_to_order_status,
    normalize_kitchen_status,
    should_auto_finish,
    status_precedes,
    transition_hint,
)

if TYPE_CHECKING:
    from modules.customers.models import Customer
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import CreateOrderDTO, UpdateOrderDTO
    from modules.orders.models import Order, OrderLog
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

AUTO_FINISH_NOTE = "Finished automatically after customer feedback"


class OrderService:
    """Application service for Order use-cases.

    Receives its repositories via constructor injection (DIP).  The
    customer repository is only needed to place orders for a saved
    customer; the kitchen and delivery pages never create orders.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_repository: Optional[ICustomerRepository] = None,
    ) -> None:
        self._order_repo = order_repository
        self._customer_repo = customer_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, user: str = "") -> Order:
        """Create a draft (``incomplete``) or submitted (``in-queue``) order.

        Raises:
            CustomerNotFound: ``customer_id`` names no live customer.
        """
        data = dto.to_model_data()
        if dto.customer_id is not None:
            data = self._with_customer_snapshot(data, self._get_customer(dto.customer_id))
        order = self._order_repo.create(data)
        order.add_domain_event(OrderCreated(aggregate_id=order.id))
        self._order_repo.save(order)

        self._order_repo.add_log(
            order.id,
            OrderLogType.STATUS_CHANGE,
            previous_status=None,
            new_status=order.status,
            note="Order submitted" if dto.submit else "Draft created",
            user=user,
        )
        logger.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def update_order(
        self, order_id: UUID | str, dto: UpdateOrderDTO, user: str = ""
    ) -> Order:
        """Apply a partial update from the order edit form.

        A ``status`` in the payload is validated before any field is
        written and then applied through ``apply_transition``.  Writes that
        complete the feedback step finish the order automatically.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: the requested status change is not allowed.
        """
        order = self._lock(order_id)
        target = dto.status
        if target is not None:
            self._check_transition(order, target, TransitionSource.GENERIC)

        changes = dto.field_changes()
        if changes:
            for name, value in changes.items():
                setattr(order, name, value)
            order.add_domain_event(OrderUpdated(aggregate_id=order.id))
            self._order_repo.save(order)
            logger.info(
                "order.updated", order_id=str(order.id), fields=sorted(changes)
            )

        if target is not None and target != order.status:
            self._transition(
                order, target, source=TransitionSource.GENERIC, user=user, note=dto.note
            )
        else:
            self._auto_finish(order)
        return self._refresh(order)

    @transaction.atomic
    def apply_transition(
        self,
        order_id: UUID | str,
        target: str,
        *,
        source: str = TransitionSource.GENERIC,
        user: str = "",
        note: str = "",
        kitchen_status: Optional[str] = None,
    ) -> Order:
        """Move an order to *target* and write the matching side effects.

        A self-transition returns the order untouched: no log entry and
        no side-effect writes.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: the policy rejects the change; ``hint``
                names the page that owns the current status.
            InvalidKitchenStatus: *kitchen_status* is unknown or does not
                belong to *target*.
        """
        order = self._lock(order_id)
        if target == order.status:
            return self._refresh(order)
        self._check_transition(order, target, source)
        kitchen_status = self._check_kitchen_status(target, kitchen_status)
        self._transition(
            order,
            target,
            source=source,
            user=user,
            note=note,
            kitchen_status=kitchen_status,
        )
        return self._refresh(order)

    def cancel_order(self, order_id: UUID | str, user: str = "", note: str = "") -> Order:
        return self.apply_transition(
            order_id, OrderStatus.CANCELLED, user=user, note=note or "Order cancelled"
        )

    def archive_order(self, order_id: UUID | str, user: str = "") -> Order:
        return self.apply_transition(
            order_id, OrderStatus.ARCHIVED, user=user, note="Order archived"
        )

    @transaction.atomic
    def restore_order(self, order_id: UUID | str, user: str = "") -> Order:
        """Bring an archived order back to ``finished``."""
        order = self._lock(order_id)
        if order.status != OrderStatus.ARCHIVED:
            raise InvalidOrderStatus(
                f"Only archived orders can be restored (status is {order.status})."
            )
        self._transition(
            order,
            OrderStatus.FINISHED,
            source=TransitionSource.GENERIC,
            user=user,
            note="Restored from archive",
        )
        return self._refresh(order)

    @transaction.atomic
    def record_print(self, order_id: UUID | str, type: str, user: str = "") -> Order:
        order = self._lock(order_id)
        self._order_repo.add_print_event(order.id, type, user=user)
        self._order_repo.add_log(
            order.id,
            OrderLogType.PRINT,
            note=f"Printed {PrintType(type).label.lower()}",
            user=user,
            metadata={"print_type": type},
        )
        logger.info("order.printed", order_id=str(order.id), print_type=type)
        return self._refresh(order)

    @transaction.atomic
    def add_note(self, order_id: UUID | str, note: str, user: str = "") -> OrderLog:
        order = self._lock(order_id)
        return self._order_repo.add_log(
            order.id, OrderLogType.NOTE, note=note, user=user
        )

    @transaction.atomic
    def delete_draft(self, order_id: UUID | str) -> None:
        """Delete an order that was never submitted.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: the order has left ``incomplete``.
        """
        order = self._lock(order_id)
        if order.status != OrderStatus.INCOMPLETE:
            raise InvalidOrderStatus(
                f"Only draft orders can be deleted (status is {order.status})."
            )
        self._order_repo.delete(str(order.id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: UUID | str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> Any:
        """Return orders, optionally filtered."""
        return self._order_repo.list(filters)

    def get_logs(self, order_id: UUID | str) -> List[OrderLog]:
        return list(self.get_order(order_id).logs.all())

    def allowed_transitions(
        self, order_id: UUID | str, source: str = TransitionSource.GENERIC
    ) -> Dict[str, Any]:
        order = self.get_order(order_id)
        return {
            "status": order.status,
            "allowed": allowed_targets(order.status, source),
            "hint": transition_hint(order.status),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock(self, order_id: UUID | str) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _refresh(self, order: Order) -> Order:
        return self._order_repo.get_by_id(str(order.id)) or order

    def _get_customer(self, customer_id: UUID | str) -> Customer:
        customer = None
        if self._customer_repo is not None:
            customer = self._customer_repo.get_by_id(str(customer_id))
        if customer is None:
            raise CustomerNotFound(f"Customer {customer_id} not found.")
        return customer

    @staticmethod
    def _with_customer_snapshot(data: Dict[str, Any], customer: Customer) -> Dict[str, Any]:
        """Fill blank snapshot fields; values typed on the form win."""
        data = {**data, "customer": customer}
        data["customer_name"] = data["customer_name"] or customer.name
        data["customer_phone"] = data["customer_phone"] or customer.whatsapp_number
        address = customer.addresses.first()
        if address is not None and not data["delivery_address"]:
            data["delivery_address"] = address.text
            data["delivery_area"] = data["delivery_area"] or address.area
        return data

    def _check_transition(self, order: Order, target: str, source: str) -> None:
        if can_apply_transition(order.status, target, source):
            return
        hint = transition_hint(order.status)
        logger.warning(
            "order.invalid_transition",
            order_id=str(order.id),
            current_status=order.status,
            new_status=target,
            source=source,
        )
        raise InvalidOrderStatus(
            f"Cannot transition from {order.status} to {target}.", hint=hint
        )

    def _transition(
        self,
        order: Order,
        target: str,
        *,
        source: str,
        user: str,
        note: str,
        kitchen_status: Optional[str] = None,
    ) -> None:
        """Write *target* and its side effects on an already-locked order."""
        previous = order.status
        now = timezone.now()

        if target == OrderStatus.ARCHIVED:
            order.archived_date = now
        elif previous == OrderStatus.ARCHIVED:
            order.archived_date = None

        if (
            target in (OrderStatus.DELIVERY_CONFIRMED, OrderStatus.WAITING_FEEDBACK)
            and order.actual_delivery_time is None
        ):
            order.actual_delivery_time = now

        order.kitchen_status = self._kitchen_status_for(
            previous, target, kitchen_status, order.kitchen_status
        )
        order.status = target
        order.add_domain_event(
            OrderStatusChanged(aggregate_id=order.id, old_status=previous, new_status=target)
        )
        self._order_repo.save(order)

        if target != OrderStatus.CANCELLED and not status_precedes(
            target, OrderStatus.IN_DELIVERY
        ):
            self._confirm_preliminary_assignment(order, user)

        self._order_repo.add_log(
            order.id,
            OrderLogType.STATUS_CHANGE,
            previous_status=previous,
            new_status=target,
            note=note,
            user=user,
            metadata={"source": str(source)},
        )
        logger.info(
            "order.status_updated",
            order_id=str(order.id),
            old_status=previous,
            new_status=target,
            source=str(source),
        )
        self._auto_finish(order)

    @staticmethod
    def _check_kitchen_status(target: str, requested: Optional[str]) -> Optional[str]:
        """Normalize *requested* and require that it maps onto *target*.

        ``done-waiting-approval`` only goes with ``waiting-photo``; every
        other kitchen sub-status only goes with ``in-kitchen``.
        """
        requested = normalize_kitchen_status(requested)
        if requested is None:
            return None
        if requested not in KITCHEN_SEQUENCE:
            raise InvalidKitchenStatus(f"Unknown kitchen status {requested!r}.")
        if kitchen_status_to_order_status(requested) != target:
            raise InvalidKitchenStatus(
                f"Kitchen status {requested} does not belong to order status {target}."
            )
        return requested

    @staticmethod
    def _kitchen_status_for(
        previous: str,
        target: str,
        requested: Optional[str],
        stored: Optional[str],
    ) -> Optional[str]:
        if target == OrderStatus.WAITING_PHOTO:
            return KitchenStatus.DONE_WAITING_APPROVAL
        if target == OrderStatus.IN_KITCHEN:
            if requested:
                return requested
            if previous == OrderStatus.WAITING_PHOTO:
                return KitchenStatus.DECORATING
            if previous in KITCHEN_STATUSES and stored:
                return stored
            return KitchenStatus.WAITING_BAKER
        return None

    def _confirm_preliminary_assignment(self, order: Order, user: str) -> None:
        assignment = DeliveryAssignment.objects.filter(order_id=order.id).first()
        if assignment is None or not assignment.is_preliminary:
            return
        self._order_repo.save_assignment(order, {"is_preliminary": False})
        self._order_repo.add_log(
            order.id,
            OrderLogType.DRIVER_ASSIGNED,
            note=f"Assignment confirmed for {assignment.display_name}",
            user=user,
            metadata={"driver_type": assignment.driver_type, "is_preliminary": False},
        )

    def _auto_finish(self, order: Order) -> None:
        if not should_auto_finish(order):
            return
        logger.info("order.auto_finished", order_id=str(order.id))
        self._transition(
            order,
            OrderStatus.FINISHED,
            source=TransitionSource.SYSTEM,
            user="",
            note=AUTO_FINISH_NOTE,
        )
