"""Customer repository interface.

Adds the WhatsApp look-up (one live customer per number) and the saved
address book to the base contract.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.models import Customer, CustomerAddress


class ICustomerRepository(IRepository["Customer"]):
    """Repository contract for the Customer aggregate."""

    @abstractmethod
    def get_by_whatsapp(self, whatsapp_number: str) -> Optional[Customer]:
        """Live customer using *whatsapp_number* (already normalized)."""

    @abstractmethod
    def add_address(self, customer: Customer, data: Dict[str, Any]) -> CustomerAddress:
        ...

    @abstractmethod
    def get_address(self, customer: Customer, address_id: str) -> Optional[CustomerAddress]:
        ...

    @abstractmethod
    def delete_address(self, address: CustomerAddress) -> None:
        ...
