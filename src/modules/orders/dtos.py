"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderDTO``: input for order creation (draft or submitted).
- ``UpdateOrderDTO``: partial update from the order edit form.
- ``TransitionDTO``: explicit status change request.
- ``PrintDTO`` / ``NoteDTO``: print history and free-text log entries.

Responses are rendered by the DRF serializers straight from the models.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.orders.constants import OrderStatus, PrintType


def _not_blank(value: str, field_name: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{field_name} must not be blank.")
    return value


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    ``submit=False`` stores a draft (``incomplete``); ``submit=True`` places
    the order straight into the queue (``in-queue``).

    With ``customer_id`` the blank snapshot fields (name, phone, address,
    area) are filled from the saved customer by the service.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: Optional[UUID] = None
    customer_name: str = ""
    customer_phone: str = ""
    delivery_date: date
    delivery_time_slot: str = ""
    delivery_address: str = ""
    delivery_area: str = ""
    cake_shape: str
    cake_size: str
    cake_flavor: str
    cake_tier: int = 1
    cake_design: str = ""
    cake_text: str = ""
    tier_details: List[Dict[str, Any]] = Field(default_factory=list)
    notes: str = ""
    total_price: Decimal = Decimal("0.00")
    tags: List[str] = Field(default_factory=list)
    submit: bool = False

    @field_validator("cake_shape", "cake_size", "cake_flavor")
    @classmethod
    def required_text(cls, v: str, info) -> str:
        return _not_blank(v, info.field_name)

    @field_validator("customer_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @model_validator(mode="after")
    def customer_is_identified(self) -> CreateOrderDTO:
        if self.customer_id is None and not self.customer_name:
            raise ValueError("customer_name is required without customer_id.")
        return self

    @field_validator("cake_tier")
    @classmethod
    def tier_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("A cake has at least one tier.")
        return v

    @field_validator("total_price")
    @classmethod
    def price_not_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Total price cannot be negative.")
        return v

    @property
    def initial_status(self) -> str:
        return OrderStatus.IN_QUEUE if self.submit else OrderStatus.INCOMPLETE

    def to_model_data(self) -> Dict[str, Any]:
        data = self.model_dump(exclude={"submit", "customer_id"})
        data["status"] = self.initial_status
        return data


class UpdateOrderDTO(BaseModel):
    """Partial update: only the fields explicitly provided are applied.

    ``status`` is routed through the transition executor by the service;
    every other provided field is written as-is.
    """

    model_config = ConfigDict(frozen=True)

    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    delivery_date: Optional[date] = None
    delivery_time_slot: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_area: Optional[str] = None
    cake_shape: Optional[str] = None
    cake_size: Optional[str] = None
    cake_flavor: Optional[str] = None
    cake_tier: Optional[int] = None
    cake_design: Optional[str] = None
    cake_text: Optional[str] = None
    tier_details: Optional[List[Dict[str, Any]]] = None
    notes: Optional[str] = None
    total_price: Optional[Decimal] = None
    tags: Optional[List[str]] = None
    customer_feedback: Optional[str] = None
    actual_delivery_time: Optional[datetime] = None
    finished_cake_photos: Optional[List[str]] = None
    status: Optional[OrderStatus] = None
    note: str = ""

    @field_validator("customer_name", "cake_shape", "cake_size", "cake_flavor")
    @classmethod
    def required_text(cls, v: Optional[str], info) -> Optional[str]:
        if v is None:
            return v
        return _not_blank(v, info.field_name)

    def field_changes(self) -> Dict[str, Any]:
        """Fields the caller actually sent, excluding ``status`` and ``note``."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name not in {"status", "note"}
        }


class TransitionDTO(BaseModel):
    """Request to move an order to ``status``.

    Kitchen sub-statuses are owned by the kitchen endpoints; a
    ``kitchen_status`` key sent here is dropped.
    """

    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    note: str = ""


class PrintDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: PrintType


class NoteDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    note: str

    @field_validator("note")
    @classmethod
    def note_not_blank(cls, v: str) -> str:
        return _not_blank(v, "note")

