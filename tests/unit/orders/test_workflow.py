"""Unit tests for the order workflow policy and derived views.

Covers:
- ``can_transition`` rules (self, incomplete regression, archived,
  cancelled, unlocked, locked allow-list).
- Executor-level checks per source (generic, kitchen, delivery).
- Kitchen sub-status mapping, advancement and the legacy fallback.
- Time status of deliveries and the auto-finish guard.
"""

from __future__ import annotations

from datetime import date, datetime
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from modules.orders.constants import (
    ALLOWED_TRANSITIONS,
    KITCHEN_SEQUENCE,
    LOCKED_STATUSES,
    KitchenStatus,
    OrderStatus,
    TimeStatus,
    TransitionSource,
)
from modules.orders.workflow import (
    allowed_targets,
    can_apply_transition,
    can_assign_driver,
    can_start_delivery,
    can_transition,
    derive_kitchen_status,
    get_order_time_status,
    is_locked,
    kitchen_status_to_order_status,
    next_kitchen_status,
    should_auto_finish,
    slot_end_hour,
    status_precedes,
    transition_hint,
)

pytestmark = pytest.mark.unit

ALL_STATUSES = list(OrderStatus.values)
UNLOCKED = [s for s in ALL_STATUSES if s not in LOCKED_STATUSES and s != OrderStatus.CANCELLED]
JAKARTA = ZoneInfo("Asia/Jakarta")


def _order(**fields):
    defaults = {
        "status": OrderStatus.IN_QUEUE,
        "kitchen_status": None,
        "delivery_date": date(2026, 10, 19),
        "delivery_time_slot": "slot1",
        "customer_feedback": "",
        "actual_delivery_time": None,
        "delivery_assignment": None,
    }
    defaults.update(fields)
    return SimpleNamespace(**defaults)


# ---------------------------------------------------------------------------
# can_transition
# ---------------------------------------------------------------------------


class TestCanTransition:
    @pytest.mark.parametrize("status", ALL_STATUSES)
    def test_self_transition_is_always_allowed(self, status):
        assert can_transition(status, status) is True

    @pytest.mark.parametrize("target", ALL_STATUSES)
    def test_archived_only_restores_to_finished(self, target):
        expected = target in (OrderStatus.FINISHED, OrderStatus.ARCHIVED)
        assert can_transition(OrderStatus.ARCHIVED, target) is expected

    @pytest.mark.parametrize(
        "target", [s for s in ALL_STATUSES if s != OrderStatus.CANCELLED]
    )
    def test_cancelled_is_terminal(self, target):
        assert can_transition(OrderStatus.CANCELLED, target) is False

    @pytest.mark.parametrize(
        "current", [s for s in ALL_STATUSES if s != OrderStatus.INCOMPLETE]
    )
    def test_nothing_regresses_into_incomplete(self, current):
        assert can_transition(current, OrderStatus.INCOMPLETE) is False

    def test_incomplete_to_incomplete_is_allowed(self):
        assert can_transition(OrderStatus.INCOMPLETE, OrderStatus.INCOMPLETE) is True

    @pytest.mark.parametrize("current", UNLOCKED)
    def test_unlocked_statuses_move_anywhere(self, current):
        for target in ALL_STATUSES:
            if target == OrderStatus.INCOMPLETE and current != OrderStatus.INCOMPLETE:
                continue
            assert can_transition(current, target) is True, (current, target)

    @pytest.mark.parametrize(
        "current", sorted(LOCKED_STATUSES - {OrderStatus.ARCHIVED})
    )
    def test_locked_statuses_follow_allow_list(self, current):
        for target in ALL_STATUSES:
            if target == current:
                continue
            expected = target in ALLOWED_TRANSITIONS[current]
            assert can_transition(current, target) is expected, (current, target)

    def test_ready_to_deliver_cannot_start_delivery_from_dropdown(self):
        assert can_transition(OrderStatus.READY_TO_DELIVER, OrderStatus.IN_DELIVERY) is False
        assert can_transition(OrderStatus.READY_TO_DELIVER, OrderStatus.CANCELLED) is True

    def test_hint_names_owning_page(self):
        assert transition_hint(OrderStatus.IN_KITCHEN) == "Manage from Kitchen page"
        assert transition_hint(OrderStatus.IN_DELIVERY) == "Manage from Delivery page"
        assert transition_hint(OrderStatus.ARCHIVED) == "Manage from Archived page"
        assert transition_hint(OrderStatus.IN_QUEUE) is None

    @pytest.mark.parametrize("status", ALL_STATUSES)
    def test_locked_statuses_are_the_workflow_owned_ones(self, status):
        expected = status in {
            OrderStatus.IN_KITCHEN,
            OrderStatus.WAITING_PHOTO,
            OrderStatus.READY_TO_DELIVER,
            OrderStatus.IN_DELIVERY,
            OrderStatus.ARCHIVED,
        }
        assert is_locked(status) is expected


# ---------------------------------------------------------------------------
# can_apply_transition
# ---------------------------------------------------------------------------


class TestCanApplyTransition:
    def test_queue_to_waiting_photo_rejected(self):
        assert can_apply_transition(OrderStatus.IN_QUEUE, OrderStatus.WAITING_PHOTO) is False

    def test_unlocked_status_cannot_jump_into_delivery(self):
        assert can_apply_transition(OrderStatus.FINISHED, OrderStatus.IN_DELIVERY) is False

    def test_unlocked_status_moves_to_unowned_status(self):
        assert (
            can_apply_transition(OrderStatus.DELIVERY_CONFIRMED, OrderStatus.FINISHED)
            is True
        )

    def test_generic_queue_to_kitchen_follows_allow_list(self):
        assert can_apply_transition(OrderStatus.IN_QUEUE, OrderStatus.IN_KITCHEN) is True

    def test_kitchen_source_can_send_photo_back_to_decorating(self):
        assert (
            can_apply_transition(
                OrderStatus.WAITING_PHOTO, OrderStatus.IN_KITCHEN, TransitionSource.KITCHEN
            )
            is True
        )
        assert (
            can_apply_transition(OrderStatus.WAITING_PHOTO, OrderStatus.IN_KITCHEN)
            is False
        )

    def test_delivery_source_starts_delivery(self):
        assert (
            can_apply_transition(
                OrderStatus.READY_TO_DELIVER,
                OrderStatus.IN_DELIVERY,
                TransitionSource.DELIVERY,
            )
            is True
        )

    def test_workflow_source_still_may_cancel(self):
        assert (
            can_apply_transition(
                OrderStatus.IN_KITCHEN, OrderStatus.CANCELLED, TransitionSource.KITCHEN
            )
            is True
        )

    def test_allowed_targets_for_locked_status(self):
        assert allowed_targets(OrderStatus.IN_KITCHEN) == [
            OrderStatus.WAITING_PHOTO,
            OrderStatus.CANCELLED,
        ]

    def test_allowed_targets_for_cancelled_is_empty(self):
        assert allowed_targets(OrderStatus.CANCELLED) == []


# ---------------------------------------------------------------------------
# Kitchen sub-status
# ---------------------------------------------------------------------------


class TestKitchenStatus:
    def test_done_waiting_approval_maps_to_waiting_photo(self):
        assert (
            kitchen_status_to_order_status(KitchenStatus.DONE_WAITING_APPROVAL)
            == OrderStatus.WAITING_PHOTO
        )

    @pytest.mark.parametrize("kitchen_status", KITCHEN_SEQUENCE[:-1])
    def test_other_sub_statuses_map_to_in_kitchen(self, kitchen_status):
        assert kitchen_status_to_order_status(kitchen_status) == OrderStatus.IN_KITCHEN

    def test_legacy_in_progress_maps_to_in_kitchen(self):
        assert kitchen_status_to_order_status("in-progress") == OrderStatus.IN_KITCHEN

    def test_advancement_order(self):
        walked = [KitchenStatus.WAITING_BAKER]
        while (following := next_kitchen_status(walked[-1])) is not None:
            walked.append(following)
        assert tuple(walked) == KITCHEN_SEQUENCE

    def test_legacy_in_progress_advances_like_decorating(self):
        assert next_kitchen_status("in-progress") == KitchenStatus.DONE_WAITING_APPROVAL

    def test_stored_value_wins(self):
        order = _order(status=OrderStatus.IN_KITCHEN, kitchen_status=KitchenStatus.DECORATING)
        assert derive_kitchen_status(order) == KitchenStatus.DECORATING

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (OrderStatus.IN_QUEUE, KitchenStatus.WAITING_BAKER),
            (OrderStatus.WAITING_PHOTO, KitchenStatus.DONE_WAITING_APPROVAL),
            (OrderStatus.IN_KITCHEN, KitchenStatus.WAITING_COVER),
            (OrderStatus.FINISHED, None),
        ],
    )
    def test_fallback_for_records_without_kitchen_status(self, status, expected):
        assert derive_kitchen_status(_order(status=status)) == expected


# ---------------------------------------------------------------------------
# Delivery helpers
# ---------------------------------------------------------------------------


class TestDeliveryHelpers:
    def test_status_precedes(self):
        assert status_precedes(OrderStatus.IN_KITCHEN, OrderStatus.READY_TO_DELIVER)
        assert not status_precedes(OrderStatus.IN_DELIVERY, OrderStatus.IN_DELIVERY)
        assert not status_precedes(OrderStatus.CANCELLED, OrderStatus.IN_DELIVERY)

    def test_driver_assignable_until_delivery_starts(self):
        assert can_assign_driver(_order(status=OrderStatus.IN_QUEUE))
        assert can_assign_driver(_order(status=OrderStatus.READY_TO_DELIVER))
        assert not can_assign_driver(_order(status=OrderStatus.IN_DELIVERY))
        assert not can_assign_driver(_order(status=OrderStatus.CANCELLED))

    def test_start_delivery_needs_assignment(self):
        ready = _order(status=OrderStatus.READY_TO_DELIVER)
        assert can_start_delivery(ready) is False
        ready.delivery_assignment = object()
        assert can_start_delivery(ready) is True


# ---------------------------------------------------------------------------
# Time status
# ---------------------------------------------------------------------------


class TestTimeStatus:
    @pytest.mark.parametrize(
        ("slot", "hour"),
        [
            ("slot1", 13),
            ("slot2", 16),
            ("slot3", 20),
            ("17:00", 18),
            ("Pickup 09.30", 10),
            ("", 20),
            (None, 20),
            ("whenever", 20),
        ],
    )
    def test_slot_end_hour(self, slot, hour):
        assert slot_end_hour(slot) == hour

    def test_within_two_hours_before_slot_end(self):
        order = _order(status=OrderStatus.READY_TO_DELIVER)
        now = datetime(2026, 10, 19, 11, 30, tzinfo=JAKARTA)
        assert get_order_time_status(order, now=now) == TimeStatus.WITHIN_2_HOURS

    def test_late_after_slot_end(self):
        order = _order(status=OrderStatus.READY_TO_DELIVER)
        now = datetime(2026, 10, 19, 14, 0, tzinfo=JAKARTA)
        assert get_order_time_status(order, now=now) == TimeStatus.LATE

    def test_tomorrow_is_never_flagged(self):
        order = _order(delivery_date=date(2026, 10, 20))
        now = datetime(2026, 10, 19, 23, 0, tzinfo=JAKARTA)
        assert get_order_time_status(order, now=now) is None

    def test_plenty_of_time_is_not_flagged(self):
        order = _order(delivery_time_slot="slot3")
        now = datetime(2026, 10, 19, 9, 0, tzinfo=JAKARTA)
        assert get_order_time_status(order, now=now) is None

    def test_past_dates_are_late(self):
        order = _order(delivery_date=date(2026, 10, 17))
        now = datetime(2026, 10, 19, 8, 0, tzinfo=JAKARTA)
        assert get_order_time_status(order, now=now) == TimeStatus.LATE

    def test_utc_now_is_read_in_local_time(self):
        # 04:30 UTC is 11:30 in Jakarta.
        order = _order()
        now = datetime(2026, 10, 19, 4, 30, tzinfo=ZoneInfo("UTC"))
        assert get_order_time_status(order, now=now) == TimeStatus.WITHIN_2_HOURS


# ---------------------------------------------------------------------------
# Auto-finish guard
# ---------------------------------------------------------------------------


class TestAutoFinishGuard:
    def test_needs_feedback_and_delivery_time(self):
        delivered = datetime(2026, 10, 19, 12, 0, tzinfo=JAKARTA)
        assert not should_auto_finish(_order(status=OrderStatus.WAITING_FEEDBACK))
        assert not should_auto_finish(
            _order(status=OrderStatus.WAITING_FEEDBACK, customer_feedback="   ")
        )
        assert not should_auto_finish(
            _order(status=OrderStatus.WAITING_FEEDBACK, customer_feedback="Great cake!")
        )
        assert should_auto_finish(
            _order(
                status=OrderStatus.WAITING_FEEDBACK,
                customer_feedback="Great cake!",
                actual_delivery_time=delivered,
            )
        )

    def test_only_applies_while_waiting_feedback(self):
        order = _order(
            status=OrderStatus.DELIVERY_CONFIRMED,
            customer_feedback="Great cake!",
            actual_delivery_time=datetime(2026, 10, 19, 12, 0, tzinfo=JAKARTA),
        )
        assert should_auto_finish(order) is False
