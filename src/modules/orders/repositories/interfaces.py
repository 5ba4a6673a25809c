"""Order repository interface.

Adds the order's satellite records to the base contract: the
append-only log, the delivery assignment, print history and cake
revisions.  They go through the order repository so every write also
drops the cached detail payload of the order.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import (
        CakeRevision,
        DeliveryAssignment,
        Order,
        OrderLog,
        PrintEvent,
    )


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with its assignment, logs and history prefetched."""

    @abstractmethod
    def list_by_ids(self, ids: List[str]) -> List[Order]:
        """Retrieve several orders at once, unknown ids are skipped."""

    @abstractmethod
    def add_log(
        self,
        order_id: UUID,
        type: str,
        *,
        previous_status: Optional[str] = None,
        new_status: Optional[str] = None,
        note: str = "",
        user: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> OrderLog:
        """Append one entry to the order log."""

    @abstractmethod
    def save_assignment(self, order: Order, data: Dict[str, Any]) -> DeliveryAssignment:
        """Create or update the order's single delivery assignment."""

    @abstractmethod
    def add_print_event(self, order_id: UUID, type: str, user: str = "") -> PrintEvent:
        """Record that an order form or delivery label was printed."""

    @abstractmethod
    def add_revision(
        self,
        order_id: UUID,
        notes: str,
        photos: Optional[List[str]] = None,
        requested_by: str = "",
    ) -> CakeRevision:
        """Record a revision request for the order's cake."""
