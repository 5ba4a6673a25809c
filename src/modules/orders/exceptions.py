"""Order domain exceptions.

Raised by the Service Layer when workflow rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from typing import Optional


class OrderNotFound(Exception):
    """The requested order does not exist."""


class InvalidOrderStatus(Exception):
    """A status transition was rejected by the transition policy.

    ``hint`` carries the advisory redirect text for locked statuses
    (e.g. "Manage from Kitchen page").
    """

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint


class InvalidKitchenStatus(Exception):
    """A kitchen sub-status change does not fit the order's current state."""


class DriverNotAssigned(Exception):
    """Delivery cannot start without a driver assignment."""


class InvalidDriverAssignment(Exception):
    """The order can no longer receive or change a driver assignment."""


class RevisionNotesRequired(Exception):
    """A revision request must explain what needs to be fixed."""
