"""Customer address book.

- ``Customer``: who orders, reachable on WhatsApp.  Soft-deleted so the
  orders placed for a removed customer keep their link.
- ``CustomerAddress``: saved delivery addresses, at most
  ``MAX_ADDRESSES`` per customer.

Orders copy name, phone and address at creation time; editing a customer
never rewrites an existing order.
"""

from __future__ import annotations

import re

from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel

MAX_ADDRESSES = 5
DEFAULT_AREA = "Jakarta"


def normalize_whatsapp(value: str) -> str:
    """Keep digits and a leading ``+``: ``0812-3456 7890`` -> ``081234567890``."""
    value = value.strip()
    prefix = "+" if value.startswith("+") else ""
    return prefix + re.sub(r"\D", "", value)


class Customer(SoftDeleteModel):
    name = models.CharField(max_length=255)
    whatsapp_number = models.CharField(max_length=20)
    email = models.EmailField(max_length=254, blank=True, default="")

    class Meta:
        db_table = "customers"
        ordering = ["name", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["whatsapp_number"],
                condition=models.Q(deleted_at__isnull=True),
                name="customers_unique_live_whatsapp",
            )
        ]

    def save(self, *args, **kwargs) -> None:
        if self.whatsapp_number:
            self.whatsapp_number = normalize_whatsapp(self.whatsapp_number)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        suffix = self.whatsapp_number[-4:] if self.whatsapp_number else "????"
        return f"{self.name} (***{suffix})"


class CustomerAddress(BaseModel):
    customer = models.ForeignKey(
        Customer, on_delete=models.CASCADE, related_name="addresses"
    )
    text = models.TextField()
    delivery_notes = models.TextField(blank=True, default="")
    area = models.CharField(max_length=100, default=DEFAULT_AREA)

    class Meta:
        db_table = "customer_addresses"
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.area}: {self.text[:40]}"
