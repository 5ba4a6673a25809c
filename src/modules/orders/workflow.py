"""Order status workflow: transition policy and derived-status views.

Everything here is a pure function of its arguments.  The service layer
(``modules.orders.services``) is the only caller that turns a decision
made here into a database write.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

from django.utils import timezone

from modules.orders.constants import (
    ALLOWED_TRANSITIONS,
    CUSTOM_SLOT_WINDOW_HOURS,
    DEFAULT_SLOT_END_HOUR,
    KITCHEN_SEQUENCE,
    LEGACY_KITCHEN_STATUS_ALIASES,
    LOCKED_STATUSES,
    STATUS_SEQUENCE,
    TIME_SLOT_END_HOURS,
    TRANSITION_HINTS,
    WITHIN_HOURS_THRESHOLD,
    WORKFLOW_OWNED_STATUSES,
    WORKFLOW_TRANSITIONS,
    KitchenStatus,
    OrderStatus,
    TimeStatus,
    TransitionSource,
)

_CUSTOM_SLOT_TIME = re.compile(r"(\d{1,2})[:.]\d{2}")

# Best-effort guesses for legacy orders that never stored a kitchen status.
_KITCHEN_STATUS_FALLBACK: dict[str, str] = {
    OrderStatus.IN_QUEUE: KitchenStatus.WAITING_BAKER,
    OrderStatus.WAITING_PHOTO: KitchenStatus.DONE_WAITING_APPROVAL,
    OrderStatus.IN_KITCHEN: KitchenStatus.WAITING_COVER,
}


# ---------------------------------------------------------------------------
# Transition policy
# ---------------------------------------------------------------------------


def is_locked(status: str) -> bool:
    """Return ``True`` when *status* only allows its allow-list transitions."""
    return status in LOCKED_STATUSES


def can_transition(current: str, target: str) -> bool:
    """Decide whether the generic status control may move *current* to *target*.

    Rules, in priority order:

    1. A self-transition is always allowed (and is a no-op for the caller).
    2. Nothing may regress into ``incomplete``.
    3. ``archived`` may only be restored to ``finished``.
    4. Unlocked statuses may move anywhere.
    5. Locked statuses consult ``ALLOWED_TRANSITIONS``.
    """
    if target == current:
        return True
    if target == OrderStatus.INCOMPLETE:
        return False
    if current == OrderStatus.ARCHIVED:
        return target == OrderStatus.FINISHED
    if current == OrderStatus.CANCELLED:
        return False
    if not is_locked(current):
        return True
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def can_apply_transition(
    current: str,
    target: str,
    source: str = TransitionSource.GENERIC,
) -> bool:
    """Executor-level check used before any write.

    Generic changes must satisfy ``can_transition`` and may only enter a
    workflow-owned status along the allow-list of *current*.  The kitchen
    and delivery workflows may additionally use their own tables.
    """
    if target == current:
        return True
    workflow_table = WORKFLOW_TRANSITIONS.get(source)
    if workflow_table and target in workflow_table.get(current, frozenset()):
        return True
    if not can_transition(current, target):
        return False
    if target in WORKFLOW_OWNED_STATUSES:
        return target in ALLOWED_TRANSITIONS.get(current, frozenset())
    return True


def allowed_targets(current: str, source: str = TransitionSource.GENERIC) -> list[str]:
    """All statuses reachable from *current* for *source*, in lifecycle order."""
    candidates = [*STATUS_SEQUENCE, OrderStatus.CANCELLED]
    return [
        status
        for status in candidates
        if status != current and can_apply_transition(current, status, source)
    ]


def transition_hint(current: str) -> Optional[str]:
    """Advisory text shown when a locked status rejects a generic change."""
    return TRANSITION_HINTS.get(current)


# ---------------------------------------------------------------------------
# Kitchen sub-status
# ---------------------------------------------------------------------------


def normalize_kitchen_status(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return LEGACY_KITCHEN_STATUS_ALIASES.get(value, value)


def kitchen_status_to_order_status(kitchen_status: str) -> str:
    """Map a kitchen sub-status onto the order lifecycle."""
    kitchen_status = normalize_kitchen_status(kitchen_status)
    if kitchen_status == KitchenStatus.DONE_WAITING_APPROVAL:
        return OrderStatus.WAITING_PHOTO
    return OrderStatus.IN_KITCHEN


def next_kitchen_status(kitchen_status: str) -> Optional[str]:
    kitchen_status = normalize_kitchen_status(kitchen_status)
    try:
        index = KITCHEN_SEQUENCE.index(kitchen_status)
    except ValueError:
        return None
    if index + 1 >= len(KITCHEN_SEQUENCE):
        return None
    return KITCHEN_SEQUENCE[index + 1]


def derive_kitchen_status(order: Any) -> Optional[str]:
    """Return the stored kitchen status, or infer one from ``order.status``.

    The inference only exists for records written before the kitchen
    status was always populated; it is lossy (``in-kitchen`` guesses
    ``waiting-cover``).
    """
    stored = normalize_kitchen_status(getattr(order, "kitchen_status", None))
    if stored:
        return stored
    return _KITCHEN_STATUS_FALLBACK.get(order.status)


# ---------------------------------------------------------------------------
# Delivery views
# ---------------------------------------------------------------------------


def status_precedes(status: str, other: str) -> bool:
    """``True`` if *status* comes strictly before *other* in the lifecycle."""
    if status not in STATUS_SEQUENCE or other not in STATUS_SEQUENCE:
        return False
    return STATUS_SEQUENCE.index(status) < STATUS_SEQUENCE.index(other)


def get_delivery_assignment(order: Any) -> Any:
    return getattr(order, "delivery_assignment", None)


def can_assign_driver(order: Any) -> bool:
    """Drivers can be (re)assigned until the cake leaves the shop."""
    return order.status != OrderStatus.CANCELLED and status_precedes(
        order.status, OrderStatus.IN_DELIVERY
    )


def can_start_delivery(order: Any) -> bool:
    return (
        order.status == OrderStatus.READY_TO_DELIVER
        and get_delivery_assignment(order) is not None
    )


def slot_end_hour(time_slot: Optional[str]) -> int:
    """End-of-window hour for a canonical or custom delivery slot."""
    if not time_slot:
        return DEFAULT_SLOT_END_HOUR
    if time_slot in TIME_SLOT_END_HOURS:
        return TIME_SLOT_END_HOURS[time_slot]
    match = _CUSTOM_SLOT_TIME.search(time_slot)
    if match:
        return int(match.group(1)) + CUSTOM_SLOT_WINDOW_HOURS
    return DEFAULT_SLOT_END_HOUR


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    return value


def get_order_time_status(order: Any, now: Optional[datetime] = None) -> Optional[str]:
    """Classify an order as ``late``, ``within-2-hours`` or ``None``.

    Orders dated after today are never flagged.  The slot end is taken on
    the delivery date in the current time zone; remaining time is counted
    in whole hours.
    """
    now = timezone.localtime(now or timezone.now())
    delivery_date = _as_date(order.delivery_date)
    if delivery_date is None:
        return None
    if delivery_date > now.date():
        return None

    start_of_day = timezone.make_aware(
        datetime.combine(delivery_date, datetime.min.time()),
        now.tzinfo,
    )
    end_time = start_of_day + timedelta(hours=slot_end_hour(order.delivery_time_slot))

    if now > end_time:
        return TimeStatus.LATE
    remaining_hours = int((end_time - now).total_seconds() // 3600)
    if remaining_hours <= WITHIN_HOURS_THRESHOLD:
        return TimeStatus.WITHIN_2_HOURS
    return None


# ---------------------------------------------------------------------------
# Auto-finish guard
# ---------------------------------------------------------------------------


def should_auto_finish(order: Any) -> bool:
    """An order waiting for feedback finishes once feedback and delivery time exist."""
    feedback = (getattr(order, "customer_feedback", "") or "").strip()
    return (
        order.status == OrderStatus.WAITING_FEEDBACK
        and bool(feedback)
        and getattr(order, "actual_delivery_time", None) is not None
    )
