"""Baking repository interface.

Extends ``IRepository[BakingTask]`` with the locking reads used by the
order aggregation and with production log / inventory writes.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.baking.models import BakingTask, CakeInventoryItem, ProductionLogEntry


class IBakingRepository(IRepository["BakingTask"]):
    """Repository contract for baking tasks, production log and inventory."""

    @abstractmethod
    def list_active_for_update(self) -> List[BakingTask]:
        """Lock and return every live pending / in-progress task."""

    @abstractmethod
    def claimed_order_ids(self) -> set[str]:
        """Order ids already attached to a live task that was not cancelled."""

    @abstractmethod
    def order_statuses(self, order_ids: Iterable[str]) -> Dict[str, str]:
        """Current status of each existing order in *order_ids*."""

    @abstractmethod
    def add_log_entry(self, data: Dict[str, Any]) -> ProductionLogEntry:
        """Append an entry to the production log."""

    @abstractmethod
    def add_to_inventory(
        self, cake_shape: str, cake_size: str, cake_flavor: str, quantity: int
    ) -> CakeInventoryItem:
        """Increase (or create) the inventory row for a cake spec."""

    @abstractmethod
    def get_inventory_item_for_update(self, id: str) -> Optional[CakeInventoryItem]:
        """Retrieve an inventory row holding a row-level lock."""

    @abstractmethod
    def save_inventory_item(self, item: CakeInventoryItem) -> CakeInventoryItem:
        """Persist an inventory row."""

    @abstractmethod
    def list_inventory(self) -> Any:
        """All inventory rows."""

    @abstractmethod
    def list_log_entries(self) -> Any:
        """Production log, newest first."""
