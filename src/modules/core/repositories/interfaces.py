"""Base contract for the module repositories.

Services only ever talk to these interfaces; the Django implementations
are injected in the views and the Celery task (tests patch them to break
a write mid-transaction).  Every aggregate in the shop is mutated under a
row lock, so the locking read is part of the base contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    @abstractmethod
    def create(self, data: Dict[str, Any]) -> T:
        """Insert a new row from model field values."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        ...

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[T]:
        """Like ``get_by_id`` but holds ``SELECT ... FOR UPDATE`` until commit.

        Must be called inside ``transaction.atomic``.
        """

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Any:
        """Queryset (or iterable) of rows matching ORM-style *filters*."""

    @abstractmethod
    def save(self, entity: T) -> T:
        ...

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Remove a row; ``False`` when nothing matched."""
