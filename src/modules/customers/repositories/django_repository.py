"""Django ORM implementation of the Customer repository.

Soft-deleted customers are invisible here: every read starts from
``Customer.objects.alive()``.  Look-ups return ``None`` instead of
raising; the Service Layer decides what a missing customer means.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.customers.models import Customer, CustomerAddress
from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerDjangoRepository(ICustomerRepository):
    """Concrete Customer repository backed by Django ORM."""

    def _base_queryset(self) -> QuerySet:
        return Customer.objects.alive().prefetch_related("addresses")

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Customer:
        customer = Customer(**data)
        customer.save()
        logger.info("customer.created", customer_id=str(customer.id))
        return customer

    def get_by_id(self, id: str) -> Optional[Customer]:
        """Return ``None`` for unknown, deleted or malformed IDs."""
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Customer]:
        try:
            return Customer.objects.alive().select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_whatsapp(self, whatsapp_number: str) -> Optional[Customer]:
        return self._base_queryset().filter(whatsapp_number=whatsapp_number).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """Live customers, optionally narrowed with ORM look-ups such as
        ``{"name__icontains": "ayu"}``."""
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Customer) -> Customer:
        entity.save()
        logger.info("customer.saved", customer_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        customer = self.get_by_id(id)
        if customer is None:
            return False
        customer.delete()
        logger.info("customer.soft_deleted", customer_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Address book
    # ------------------------------------------------------------------

    def add_address(self, customer: Customer, data: Dict[str, Any]) -> CustomerAddress:
        address = CustomerAddress.objects.create(customer=customer, **data)
        logger.info(
            "customer.address_added",
            customer_id=str(customer.id),
            address_id=str(address.id),
            area=address.area,
        )
        return address

    def get_address(self, customer: Customer, address_id: str) -> Optional[CustomerAddress]:
        try:
            return CustomerAddress.objects.filter(customer=customer, id=address_id).first()
        except (ValueError, ValidationError):
            return None

    def delete_address(self, address: CustomerAddress) -> None:
        address_id = str(address.id)
        address.delete()
        logger.info("customer.address_removed", address_id=address_id)
