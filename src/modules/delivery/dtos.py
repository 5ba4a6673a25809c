"""Delivery DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import DriverType, TimeStatus


class AssignDriverDTO(BaseModel):
    """Driver assignment request.

    ``driver_name`` is only kept for third-party couriers, where it is
    required.  ``is_preliminary=None`` lets the service decide from the
    order status.
    """

    model_config = ConfigDict(frozen=True)

    driver_type: DriverType
    driver_name: str = ""
    vehicle_info: str = ""
    notes: str = ""
    is_preliminary: Optional[bool] = None

    @field_validator("driver_name", "vehicle_info", "notes")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @model_validator(mode="after")
    def third_party_needs_name(self):
        if self.driver_type == DriverType.THIRD_PARTY and not self.driver_name:
            raise ValueError("A third-party courier needs a driver name.")
        return self


class FeedbackDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    feedback: str

    @field_validator("feedback")
    @classmethod
    def feedback_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Feedback must not be blank.")
        return v


class DeliveryListQuery(BaseModel):
    """Filters of the delivery board."""

    model_config = ConfigDict(frozen=True)

    date_filter: Literal["today", "tomorrow", "d-plus-2", "all"] = "today"
    status_filter: Literal["ready", "in-transit", "all"] = "all"
    time_status: Optional[TimeStatus] = None
    slot: Optional[str] = None


class CreateTripDTO(BaseModel):
    """New delivery trip; the trip number is picked by the service."""

    model_config = ConfigDict(frozen=True)

    name: str
    driver_type: DriverType
    driver_name: str = ""
    trip_date: date
    notes: str = ""

    @field_validator("name", "driver_name", "notes")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Trip name must not be blank.")
        return v

    @model_validator(mode="after")
    def third_party_needs_name(self):
        if self.driver_type == DriverType.THIRD_PARTY and not self.driver_name:
            raise ValueError("A third-party courier needs a driver name.")
        return self
