"""Customer service layer (Use Cases).

Keeps the customer address book: contact details, up to
``MAX_ADDRESSES`` saved delivery addresses, and the WhatsApp look-up the
order form uses to recognise a returning customer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import QuerySet

from modules.customers.exceptions import (
    AddressLimitReached,
    AddressNotFound,
    CustomerAlreadyExists,
    CustomerNotFound,
)
from modules.customers.models import MAX_ADDRESSES, Customer, normalize_whatsapp

if TYPE_CHECKING:
    from modules.customers.dtos import AddressDTO, CreateCustomerDTO, UpdateCustomerDTO
    from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerService:
    """Application service for Customer use-cases.

    Receives an ``ICustomerRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: ICustomerRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_customer(self, dto: CreateCustomerDTO) -> Customer:
        """Create a customer together with its initial addresses.

        Raises:
            CustomerAlreadyExists: the WhatsApp number belongs to another
                live customer.
        """
        if self._repo.get_by_whatsapp(dto.whatsapp_number):
            logger.warning("customer.duplicate_whatsapp")
            raise CustomerAlreadyExists("WhatsApp number already registered.")

        customer = self._repo.create(
            {
                "name": dto.name,
                "whatsapp_number": dto.whatsapp_number,
                "email": dto.email or "",
            }
        )
        for address in dto.addresses:
            self._repo.add_address(customer, address.model_dump())
        return self.get_customer(customer.id)

    @transaction.atomic
    def update_customer(self, id: UUID | str, dto: UpdateCustomerDTO) -> Customer:
        """Write the provided contact fields.

        Orders already placed keep the name and phone they were created
        with.

        Raises:
            CustomerNotFound: customer does not exist.
            CustomerAlreadyExists: the new WhatsApp number is taken.
        """
        customer = self._lock(id)
        changes = dto.field_changes()

        number = changes.get("whatsapp_number")
        if number and number != customer.whatsapp_number:
            if self._repo.get_by_whatsapp(number):
                logger.warning("customer.duplicate_whatsapp", customer_id=str(id))
                raise CustomerAlreadyExists("WhatsApp number already registered.")

        for name, value in changes.items():
            setattr(customer, name, value)
        self._repo.save(customer)
        logger.info("customer.updated", customer_id=str(id), fields=sorted(changes))
        return self.get_customer(customer.id)

    @transaction.atomic
    def delete_customer(self, id: UUID | str) -> None:
        """Soft-delete; linked orders keep pointing at the row."""
        if not self._repo.delete(str(id)):
            raise CustomerNotFound(f"Customer {id} not found.")

    @transaction.atomic
    def add_address(self, id: UUID | str, dto: AddressDTO) -> Customer:
        """Raises ``AddressLimitReached`` past ``MAX_ADDRESSES``."""
        customer = self._lock(id)
        if customer.addresses.count() >= MAX_ADDRESSES:
            raise AddressLimitReached(
                f"A customer can have at most {MAX_ADDRESSES} addresses."
            )
        self._repo.add_address(customer, dto.model_dump())
        return self.get_customer(customer.id)

    @transaction.atomic
    def remove_address(self, id: UUID | str, address_id: UUID | str) -> Customer:
        customer = self._lock(id)
        address = self._repo.get_address(customer, str(address_id))
        if address is None:
            raise AddressNotFound(f"Address {address_id} not found.")
        self._repo.delete_address(address)
        return self.get_customer(customer.id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_customer(self, id: UUID | str) -> Customer:
        customer = self._repo.get_by_id(str(id))
        if customer is None:
            raise CustomerNotFound(f"Customer {id} not found.")
        return customer

    def list_customers(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        return self._repo.list(filters)

    def find_by_whatsapp(self, whatsapp_number: str) -> Customer:
        """Look up a returning customer from a formatted or raw number."""
        customer = self._repo.get_by_whatsapp(normalize_whatsapp(whatsapp_number))
        if customer is None:
            raise CustomerNotFound("No customer with this WhatsApp number.")
        return customer

    def customer_orders(self, id: UUID | str) -> QuerySet:
        """Orders placed for the customer, newest delivery first."""
        customer = self.get_customer(id)
        return customer.orders.all().order_by("-delivery_date", "-created_at")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock(self, id: UUID | str) -> Customer:
        customer = self._repo.get_for_update(str(id))
        if customer is None:
            raise CustomerNotFound(f"Customer {id} not found.")
        return customer
