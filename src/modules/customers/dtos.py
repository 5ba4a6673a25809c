"""Customer DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  DTOs are
immutable (``frozen=True``).

- ``AddressDTO``: one saved delivery address.
- ``CreateCustomerDTO``: new customer, optionally with addresses.
- ``UpdateCustomerDTO``: partial update of the contact fields.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from modules.customers.models import DEFAULT_AREA, MAX_ADDRESSES, normalize_whatsapp


def _whatsapp(value: str) -> str:
    value = normalize_whatsapp(value)
    if len(value.lstrip("+")) < 8:
        raise ValueError("WhatsApp number must have at least 8 digits.")
    return value


class AddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    delivery_notes: str = ""
    area: str = DEFAULT_AREA

    @field_validator("text", "area")
    @classmethod
    def not_blank(cls, v: str, info) -> str:
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name} must not be blank.")
        return v


class CreateCustomerDTO(BaseModel):
    """Immutable DTO for customer creation requests.

    ``whatsapp_number`` is stored digits-only (a leading ``+`` is kept) so
    formatted and raw input find the same customer.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    whatsapp_number: str
    email: Optional[EmailStr] = None
    addresses: List[AddressDTO] = Field(default_factory=list, max_length=MAX_ADDRESSES)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank.")
        return v

    @field_validator("whatsapp_number")
    @classmethod
    def sanitize_whatsapp(cls, v: str) -> str:
        return _whatsapp(v)


class UpdateCustomerDTO(BaseModel):
    """Only the fields explicitly provided are written."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    whatsapp_number: Optional[str] = None
    email: Optional[EmailStr] = None

    @field_validator("whatsapp_number")
    @classmethod
    def sanitize_whatsapp(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _whatsapp(v)

    def field_changes(self) -> dict:
        changes = {name: getattr(self, name) for name in self.model_fields_set}
        if "email" in changes and changes["email"] is None:
            changes["email"] = ""
        return changes
