"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created (draft or submitted)."""


@dataclass(frozen=True)
class OrderUpdated(DomainEvent):
    """Raised when order fields change without a status transition."""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an order status changes."""

    old_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class DriverAssigned(DomainEvent):
    """Raised when a driver assignment is created, changed or confirmed."""

    is_preliminary: bool = False
