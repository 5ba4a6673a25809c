"""Order domain constants.

Defines the status taxonomies, the generic transition allow-list used by
the order status dropdown, and the transition tables owned by the
dedicated kitchen and delivery workflows.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    INCOMPLETE = "incomplete", "Incomplete"
    IN_QUEUE = "in-queue", "In Queue"
    IN_KITCHEN = "in-kitchen", "In Kitchen"
    WAITING_PHOTO = "waiting-photo", "Waiting Photo"
    READY_TO_DELIVER = "ready-to-deliver", "Ready To Deliver"
    IN_DELIVERY = "in-delivery", "In Delivery"
    DELIVERY_CONFIRMED = "delivery-confirmed", "Delivery Confirmed"
    WAITING_FEEDBACK = "waiting-feedback", "Waiting Feedback"
    FINISHED = "finished", "Finished"
    ARCHIVED = "archived", "Archived"
    CANCELLED = "cancelled", "Cancelled"


class KitchenStatus(models.TextChoices):
    WAITING_BAKER = "waiting-baker", "Waiting Baker"
    WAITING_CRUMBCOAT = "waiting-crumbcoat", "Waiting Crumbcoat"
    WAITING_COVER = "waiting-cover", "Waiting Cover"
    DECORATING = "decorating", "Decorating"
    DONE_WAITING_APPROVAL = "done-waiting-approval", "Done, Waiting Approval"


class TransitionSource(models.TextChoices):
    """Which workflow is driving a status change."""

    GENERIC = "generic", "Status dropdown"
    KITCHEN = "kitchen", "Kitchen page"
    DELIVERY = "delivery", "Delivery page"
    SYSTEM = "system", "System"


class OrderLogType(models.TextChoices):
    STATUS_CHANGE = "status-change", "Status change"
    PRINT = "print", "Print"
    DRIVER_ASSIGNED = "driver-assigned", "Driver assigned"
    DELIVERY_UPDATE = "delivery-update", "Delivery update"
    REVISION = "revision", "Revision"
    NOTE = "note", "Note"


class PrintType(models.TextChoices):
    ORDER_FORM = "order-form", "Order form"
    DELIVERY_LABEL = "delivery-label", "Delivery label"


class DriverType(models.TextChoices):
    DRIVER_1 = "driver-1", "Driver 1"
    DRIVER_2 = "driver-2", "Driver 2"
    THIRD_PARTY = "3rd-party", "3rd Party"


# Older records stored the decorating step as "in-progress".
LEGACY_KITCHEN_STATUS_ALIASES: dict[str, str] = {
    "in-progress": KitchenStatus.DECORATING,
}

KITCHEN_SEQUENCE: tuple[str, ...] = (
    KitchenStatus.WAITING_BAKER,
    KitchenStatus.WAITING_CRUMBCOAT,
    KitchenStatus.WAITING_COVER,
    KitchenStatus.DECORATING,
    KitchenStatus.DONE_WAITING_APPROVAL,
)

# Statuses whose outward transitions are restricted to ALLOWED_TRANSITIONS.
LOCKED_STATUSES: frozenset[str] = frozenset(
    {
        OrderStatus.IN_KITCHEN,
        OrderStatus.WAITING_PHOTO,
        OrderStatus.IN_DELIVERY,
        OrderStatus.READY_TO_DELIVER,
        OrderStatus.ARCHIVED,
    }
)

# Statuses that only the kitchen or delivery workflow may move an order into,
# unless the generic allow-list of the current status names them.
WORKFLOW_OWNED_STATUSES: frozenset[str] = frozenset(
    {
        OrderStatus.IN_KITCHEN,
        OrderStatus.WAITING_PHOTO,
        OrderStatus.READY_TO_DELIVER,
        OrderStatus.IN_DELIVERY,
    }
)

KITCHEN_STATUSES: frozenset[str] = frozenset(
    {OrderStatus.IN_KITCHEN, OrderStatus.WAITING_PHOTO}
)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.INCOMPLETE: frozenset({OrderStatus.IN_QUEUE, OrderStatus.CANCELLED}),
    OrderStatus.IN_QUEUE: frozenset({OrderStatus.IN_KITCHEN, OrderStatus.CANCELLED}),
    OrderStatus.IN_KITCHEN: frozenset(
        {OrderStatus.WAITING_PHOTO, OrderStatus.CANCELLED}
    ),
    OrderStatus.WAITING_PHOTO: frozenset(
        {OrderStatus.READY_TO_DELIVER, OrderStatus.CANCELLED}
    ),
    OrderStatus.READY_TO_DELIVER: frozenset({OrderStatus.CANCELLED}),
    OrderStatus.IN_DELIVERY: frozenset(
        {OrderStatus.DELIVERY_CONFIRMED, OrderStatus.CANCELLED}
    ),
    OrderStatus.DELIVERY_CONFIRMED: frozenset(
        {OrderStatus.WAITING_FEEDBACK, OrderStatus.CANCELLED}
    ),
    OrderStatus.WAITING_FEEDBACK: frozenset(
        {OrderStatus.FINISHED, OrderStatus.CANCELLED}
    ),
    OrderStatus.FINISHED: frozenset({OrderStatus.ARCHIVED, OrderStatus.CANCELLED}),
    OrderStatus.ARCHIVED: frozenset({OrderStatus.FINISHED}),
    OrderStatus.CANCELLED: frozenset(),
}

KITCHEN_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.IN_QUEUE: frozenset({OrderStatus.IN_KITCHEN}),
    OrderStatus.IN_KITCHEN: frozenset({OrderStatus.WAITING_PHOTO}),
    # Photo rejected: the cake goes back to the decorators.
    OrderStatus.WAITING_PHOTO: frozenset(
        {OrderStatus.READY_TO_DELIVER, OrderStatus.IN_KITCHEN}
    ),
}

DELIVERY_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.READY_TO_DELIVER: frozenset({OrderStatus.IN_DELIVERY}),
    OrderStatus.IN_DELIVERY: frozenset({OrderStatus.DELIVERY_CONFIRMED}),
    OrderStatus.DELIVERY_CONFIRMED: frozenset({OrderStatus.WAITING_FEEDBACK}),
    OrderStatus.WAITING_FEEDBACK: frozenset({OrderStatus.FINISHED}),
}

WORKFLOW_TRANSITIONS: dict[str, dict[str, frozenset[str]]] = {
    TransitionSource.KITCHEN: KITCHEN_TRANSITIONS,
    TransitionSource.DELIVERY: DELIVERY_TRANSITIONS,
}

TRANSITION_HINTS: dict[str, str] = {
    OrderStatus.IN_KITCHEN: "Manage from Kitchen page",
    OrderStatus.WAITING_PHOTO: "Manage from Kitchen page",
    OrderStatus.READY_TO_DELIVER: "Manage from Delivery page",
    OrderStatus.IN_DELIVERY: "Manage from Delivery page",
    OrderStatus.ARCHIVED: "Manage from Archived page",
}

TERMINAL_STATES: frozenset[str] = frozenset({OrderStatus.CANCELLED})

# Ordered lifecycle, used to answer "does this status precede in-delivery".
STATUS_SEQUENCE: tuple[str, ...] = (
    OrderStatus.INCOMPLETE,
    OrderStatus.IN_QUEUE,
    OrderStatus.IN_KITCHEN,
    OrderStatus.WAITING_PHOTO,
    OrderStatus.READY_TO_DELIVER,
    OrderStatus.IN_DELIVERY,
    OrderStatus.DELIVERY_CONFIRMED,
    OrderStatus.WAITING_FEEDBACK,
    OrderStatus.FINISHED,
    OrderStatus.ARCHIVED,
)

# Delivery window end hour (local time) for the canonical time slots.
TIME_SLOT_END_HOURS: dict[str, int] = {
    "slot1": 13,
    "slot2": 16,
    "slot3": 20,
}
TIME_SLOT_LABELS: dict[str, str] = {
    "slot1": "10:00 - 13:00",
    "slot2": "13:00 - 16:00",
    "slot3": "16:00 - 20:00",
}
DEFAULT_SLOT_END_HOUR = 20
CUSTOM_SLOT_WINDOW_HOURS = 1
WITHIN_HOURS_THRESHOLD = 2


class TimeStatus(models.TextChoices):
    LATE = "late", "Late"
    WITHIN_2_HOURS = "within-2-hours", "Within 2 Hours"


ORDER_NUMBER_MAX_RETRIES = 5
