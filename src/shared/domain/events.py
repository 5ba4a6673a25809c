"""Domain event primitives shared by every module."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from uuid6 import uuid7


@dataclass(frozen=True)
class DomainEvent:
    """Immutable fact about an aggregate.

    Subclasses add their own fields with defaults; ``event_name`` is the
    class name and is filled in automatically.
    """

    aggregate_id: UUID
    event_id: UUID = field(default_factory=uuid7)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", self.__class__.__name__)

    def as_log_context(self) -> dict[str, Any]:
        """Flat, string-friendly view of the event for structured logs."""
        data = asdict(self)
        data["aggregate_id"] = str(self.aggregate_id)
        data["event_id"] = str(self.event_id)
        data["occurred_on"] = self.occurred_on.isoformat()
        return data


class DomainEventMixin:
    """Lets an aggregate queue events until its repository publishes them.

    The queue lives on the instance only; a freshly loaded row starts empty.
    """

    def _pending_events(self) -> list[DomainEvent]:
        return self.__dict__.setdefault("_domain_events", [])

    def add_domain_event(self, event: DomainEvent) -> None:
        self._pending_events().append(event)

    def pop_domain_events(self) -> list[DomainEvent]:
        events = self._pending_events()
        self.__dict__["_domain_events"] = []
        return events

    @property
    def domain_events(self) -> list[DomainEvent]:
        return list(self._pending_events())
