"""Unit tests for ``OrderService``.

Covers:
- Creation of drafts and submitted orders (initial log entry).
- The transition executor: rejection before writes, self-transition
  no-op, side effects (archive date, delivery time, kitchen status).
- Auto-finish when feedback and delivery time are both present.
- Partial updates, cancellation, restore, prints, notes, draft deletion.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
from django.utils import timezone

from modules.customers.exceptions import CustomerNotFound
from modules.delivery.dtos import AssignDriverDTO
from modules.orders.constants import (
    DriverType,
    KitchenStatus,
    OrderLogType,
    OrderStatus,
    PrintType,
    TransitionSource,
)
from modules.orders.dtos import CreateOrderDTO, UpdateOrderDTO
from modules.orders.exceptions import (
    InvalidKitchenStatus,
    InvalidOrderStatus,
    OrderNotFound,
)
from modules.orders.models import DeliveryAssignment, Order, OrderLog
from modules.orders.services import AUTO_FINISH_NOTE

pytestmark = pytest.mark.unit


def _status_logs(order):
    return list(
        OrderLog.objects.filter(order=order, type=OrderLogType.STATUS_CHANGE).order_by(
            "timestamp", "created_at"
        )
    )


def _create_dto(**overrides):
    data = {
        "customer_name": "Budi Santoso",
        "customer_phone": "0813-2222-1111",
        "delivery_date": date(2026, 10, 21),
        "delivery_time_slot": "slot3",
        "cake_shape": "square",
        "cake_size": "20cm",
        "cake_flavor": "red velvet",
    }
    data.update(overrides)
    return CreateOrderDTO(**data)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


class TestCreateOrder:
    def test_draft_starts_incomplete(self, order_service):
        order = order_service.create_order(_create_dto(), user="sari")

        assert order.status == OrderStatus.INCOMPLETE
        assert order.order_number.startswith("ORD-")
        [log] = _status_logs(order)
        assert log.previous_status is None
        assert log.new_status == OrderStatus.INCOMPLETE
        assert log.note == "Draft created"
        assert log.user == "sari"

    def test_submitted_order_starts_in_queue(self, order_service):
        order = order_service.create_order(_create_dto(submit=True))

        assert order.status == OrderStatus.IN_QUEUE
        assert order.kitchen_status is None
        assert _status_logs(order)[0].note == "Order submitted"

    def test_blank_cake_flavor_is_rejected(self):
        with pytest.raises(ValueError):
            _create_dto(cake_flavor="   ")

    def test_saved_customer_fills_blank_snapshot(self, order_service, make_customer):
        customer = make_customer(
            addresses=[{"text": "Jl. Menteng Raya 12", "area": "Menteng"}]
        )

        order = order_service.create_order(
            _create_dto(customer_id=customer.id, customer_name="")
        )

        assert order.customer_id == customer.id
        assert order.customer_name == "Ayu Lestari"
        # Typed on the form, so it wins over the saved number.
        assert order.customer_phone == "0813-2222-1111"
        assert order.delivery_address == "Jl. Menteng Raya 12"
        assert order.delivery_area == "Menteng"

    def test_unknown_customer_creates_nothing(self, order_service):
        with pytest.raises(CustomerNotFound):
            order_service.create_order(
                _create_dto(customer_id="018f0000-0000-7000-8000-000000000000")
            )

        assert not Order.objects.exists()


# ---------------------------------------------------------------------------
# Transition executor
# ---------------------------------------------------------------------------


class TestApplyTransition:
    def test_rejected_transition_writes_nothing(self, order_service, make_order):
        order = make_order(status=OrderStatus.IN_QUEUE)

        with pytest.raises(InvalidOrderStatus):
            order_service.apply_transition(order.id, OrderStatus.WAITING_PHOTO)

        order.refresh_from_db()
        assert order.status == OrderStatus.IN_QUEUE
        assert _status_logs(order) == []

    def test_locked_status_rejection_carries_hint(self, order_service, make_order):
        order = make_order(
            status=OrderStatus.IN_KITCHEN, kitchen_status=KitchenStatus.WAITING_COVER
        )

        with pytest.raises(InvalidOrderStatus) as exc_info:
            order_service.apply_transition(order.id, OrderStatus.FINISHED)

        assert exc_info.value.hint == "Manage from Kitchen page"

    def test_unknown_order_raises_not_found(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.apply_transition(
                "018f0000-0000-7000-8000-000000000000", OrderStatus.CANCELLED
            )

    @pytest.mark.parametrize("status", [s for s in OrderStatus.values])
    def test_self_transition_is_a_noop(self, order_service, make_order, status):
        order = make_order(status=status)
        before = Order.objects.get(pk=order.pk)

        result = order_service.apply_transition(order.id, status)

        assert result.status == status
        assert _status_logs(order) == []
        after = Order.objects.get(pk=order.pk)
        assert after.updated_at == before.updated_at
        assert after.archived_date == before.archived_date
        assert after.actual_delivery_time == before.actual_delivery_time

    def test_every_transition_appends_one_log(self, order_service, make_order):
        order = make_order(status=OrderStatus.IN_QUEUE)

        order_service.apply_transition(
            order.id, OrderStatus.IN_KITCHEN, user="sari", note="Let's bake"
        )

        [log] = _status_logs(order)
        assert log.previous_status == OrderStatus.IN_QUEUE
        assert log.new_status == OrderStatus.IN_KITCHEN
        assert log.note == "Let's bake"
        assert log.metadata == {"source": TransitionSource.GENERIC}

    def test_archive_sets_archived_date(self, order_service, make_order):
        order = make_order(status=OrderStatus.FINISHED)
        called_at = timezone.now()

        result = order_service.archive_order(order.id)

        assert result.status == OrderStatus.ARCHIVED
        assert result.archived_date >= called_at

    def test_restore_clears_archived_date(self, order_service, make_order):
        order = make_order(status=OrderStatus.ARCHIVED, archived_date=timezone.now())

        result = order_service.restore_order(order.id)

        assert result.status == OrderStatus.FINISHED
        assert result.archived_date is None
        assert _status_logs(order)[-1].note == "Restored from archive"

    def test_restore_requires_archived(self, order_service, make_order):
        order = make_order(status=OrderStatus.FINISHED)

        with pytest.raises(InvalidOrderStatus):
            order_service.restore_order(order.id)

    def test_waiting_feedback_sets_delivery_time(self, order_service, make_order):
        order = make_order(status=OrderStatus.DELIVERY_CONFIRMED)
        called_at = timezone.now()

        result = order_service.apply_transition(order.id, OrderStatus.WAITING_FEEDBACK)

        assert result.actual_delivery_time >= called_at

    def test_waiting_feedback_keeps_existing_delivery_time(
        self, order_service, make_order
    ):
        delivered = datetime(2026, 10, 18, 15, 0, tzinfo=ZoneInfo("Asia/Jakarta"))
        order = make_order(
            status=OrderStatus.DELIVERY_CONFIRMED, actual_delivery_time=delivered
        )

        result = order_service.apply_transition(order.id, OrderStatus.WAITING_FEEDBACK)

        assert result.actual_delivery_time == delivered

    def test_entering_kitchen_sets_waiting_baker(self, order_service, make_order):
        order = make_order(status=OrderStatus.IN_QUEUE)

        result = order_service.apply_transition(order.id, OrderStatus.IN_KITCHEN)

        assert result.kitchen_status == KitchenStatus.WAITING_BAKER

    def test_waiting_photo_sets_done_waiting_approval(self, order_service, make_order):
        order = make_order(
            status=OrderStatus.IN_KITCHEN, kitchen_status=KitchenStatus.DECORATING
        )

        result = order_service.apply_transition(order.id, OrderStatus.WAITING_PHOTO)

        assert result.kitchen_status == KitchenStatus.DONE_WAITING_APPROVAL

    def test_kitchen_status_must_match_target(self, order_service, make_order):
        order = make_order(status=OrderStatus.IN_QUEUE)

        with pytest.raises(InvalidKitchenStatus):
            order_service.apply_transition(
                order.id,
                OrderStatus.IN_KITCHEN,
                kitchen_status=KitchenStatus.DONE_WAITING_APPROVAL,
            )

        order.refresh_from_db()
        assert order.status == OrderStatus.IN_QUEUE
        assert order.kitchen_status is None
        assert not _status_logs(order)

    def test_legacy_kitchen_status_is_normalized(self, order_service, make_order):
        order = make_order(status=OrderStatus.IN_QUEUE)

        result = order_service.apply_transition(
            order.id, OrderStatus.IN_KITCHEN, kitchen_status="in-progress"
        )

        assert result.kitchen_status == KitchenStatus.DECORATING

    @pytest.mark.parametrize(
        "target",
        [
            OrderStatus.DELIVERY_CONFIRMED,
            OrderStatus.WAITING_FEEDBACK,
            OrderStatus.FINISHED,
        ],
    )
    def test_skipping_past_delivery_confirms_assignment(
        self, order_service, delivery_service, make_order, target
    ):
        order = make_order(status=OrderStatus.IN_QUEUE)
        delivery_service.assign_driver(
            order.id, AssignDriverDTO(driver_type=DriverType.DRIVER_1)
        )

        order_service.apply_transition(order.id, target)

        assert DeliveryAssignment.objects.get(order=order).is_preliminary is False

    def test_cancelling_keeps_assignment_preliminary(
        self, order_service, delivery_service, make_order
    ):
        order = make_order(status=OrderStatus.IN_QUEUE)
        delivery_service.assign_driver(
            order.id, AssignDriverDTO(driver_type=DriverType.DRIVER_1)
        )

        order_service.cancel_order(order.id)

        assert DeliveryAssignment.objects.get(order=order).is_preliminary is True

    def test_leaving_kitchen_clears_kitchen_status(self, order_service, make_order):
        order = make_order(
            status=OrderStatus.IN_KITCHEN, kitchen_status=KitchenStatus.DECORATING
        )

        result = order_service.cancel_order(order.id, note="Customer called")

        assert result.status == OrderStatus.CANCELLED
        assert result.kitchen_status is None
        assert _status_logs(order)[-1].note == "Customer called"

    @pytest.mark.parametrize(
        "status",
        [s for s in OrderStatus.values if s not in (OrderStatus.CANCELLED, OrderStatus.ARCHIVED)],
    )
    def test_cancellation_is_reachable(self, order_service, make_order, status):
        order = make_order(status=status)

        result = order_service.cancel_order(order.id)

        assert result.status == OrderStatus.CANCELLED

    def test_cancelled_order_cannot_move(self, order_service, make_order):
        order = make_order(status=OrderStatus.CANCELLED)

        with pytest.raises(InvalidOrderStatus):
            order_service.apply_transition(order.id, OrderStatus.IN_QUEUE)

    def test_allowed_transitions_payload(self, order_service, make_order):
        order = make_order(
            status=OrderStatus.IN_KITCHEN, kitchen_status=KitchenStatus.WAITING_BAKER
        )

        payload = order_service.allowed_transitions(order.id)

        assert payload == {
            "status": OrderStatus.IN_KITCHEN,
            "allowed": [OrderStatus.WAITING_PHOTO, OrderStatus.CANCELLED],
            "hint": "Manage from Kitchen page",
        }


# ---------------------------------------------------------------------------
# Auto-finish
# ---------------------------------------------------------------------------


class TestAutoFinish:
    def test_no_auto_finish_without_feedback(self, order_service, make_order):
        order = make_order(status=OrderStatus.WAITING_FEEDBACK)

        result = order_service.update_order(order.id, UpdateOrderDTO(notes="Called twice"))

        assert result.status == OrderStatus.WAITING_FEEDBACK

    def test_feedback_and_delivery_time_finish_the_order(self, order_service, make_order):
        order = make_order(status=OrderStatus.WAITING_FEEDBACK)

        result = order_service.update_order(
            order.id,
            UpdateOrderDTO(
                customer_feedback="Great cake!",
                actual_delivery_time=timezone.now() - timedelta(hours=3),
            ),
            user="sari",
        )

        assert result.status == OrderStatus.FINISHED
        last = _status_logs(order)[-1]
        assert last.previous_status == OrderStatus.WAITING_FEEDBACK
        assert last.new_status == OrderStatus.FINISHED
        assert last.note == AUTO_FINISH_NOTE
        assert last.user == ""
        assert last.metadata == {"source": TransitionSource.SYSTEM}

    def test_entering_waiting_feedback_with_feedback_finishes(
        self, order_service, make_order
    ):
        order = make_order(
            status=OrderStatus.DELIVERY_CONFIRMED, customer_feedback="Lovely!"
        )

        result = order_service.apply_transition(order.id, OrderStatus.WAITING_FEEDBACK)

        assert result.status == OrderStatus.FINISHED
        assert [log.new_status for log in _status_logs(order)] == [
            OrderStatus.WAITING_FEEDBACK,
            OrderStatus.FINISHED,
        ]


# ---------------------------------------------------------------------------
# Updates and other commands
# ---------------------------------------------------------------------------


class TestUpdateOrder:
    def test_only_sent_fields_are_written(self, order_service, make_order):
        order = make_order(cake_text="Happy Birthday")

        result = order_service.update_order(order.id, UpdateOrderDTO(cake_flavor="pandan"))

        assert result.cake_flavor == "pandan"
        assert result.cake_text == "Happy Birthday"
        assert _status_logs(order) == []

    def test_rejected_status_leaves_fields_untouched(self, order_service, make_order):
        order = make_order(status=OrderStatus.IN_QUEUE, cake_flavor="chocolate")

        with pytest.raises(InvalidOrderStatus):
            order_service.update_order(
                order.id,
                UpdateOrderDTO(cake_flavor="vanilla", status=OrderStatus.WAITING_PHOTO),
            )

        order.refresh_from_db()
        assert order.cake_flavor == "chocolate"
        assert order.status == OrderStatus.IN_QUEUE

    def test_status_change_goes_through_executor(self, order_service, make_order):
        order = make_order(status=OrderStatus.INCOMPLETE)

        result = order_service.update_order(
            order.id, UpdateOrderDTO(status=OrderStatus.IN_QUEUE, note="Paid")
        )

        assert result.status == OrderStatus.IN_QUEUE
        [log] = _status_logs(order)
        assert log.note == "Paid"

    def test_cannot_regress_to_incomplete(self, order_service, make_order):
        order = make_order(status=OrderStatus.IN_QUEUE)

        with pytest.raises(InvalidOrderStatus):
            order_service.update_order(
                order.id, UpdateOrderDTO(status=OrderStatus.INCOMPLETE)
            )


class TestOtherCommands:
    def test_record_print_adds_history_and_log(self, order_service, make_order):
        order = make_order()

        result = order_service.record_print(order.id, PrintType.DELIVERY_LABEL, user="sari")

        assert result.print_history.count() == 1
        log = OrderLog.objects.get(order=order, type=OrderLogType.PRINT)
        assert log.note == "Printed delivery label"

    def test_add_note(self, order_service, make_order):
        order = make_order()

        entry = order_service.add_note(order.id, "Customer prefers less sugar")

        assert entry.type == OrderLogType.NOTE
        assert entry.previous_status is None

    def test_delete_draft(self, order_service, make_order):
        order = make_order(status=OrderStatus.INCOMPLETE)

        order_service.delete_draft(order.id)

        assert not Order.objects.filter(pk=order.pk).exists()

    def test_submitted_orders_cannot_be_deleted(self, order_service, make_order):
        order = make_order(status=OrderStatus.IN_QUEUE)

        with pytest.raises(InvalidOrderStatus):
            order_service.delete_draft(order.id)
