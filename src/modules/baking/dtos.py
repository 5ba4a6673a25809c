"""Baking DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class QualityChecksDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    properly_baked: bool = True
    correct_size: bool = True
    good_texture: bool = True
    notes: str = ""


class ProductionEntryDTO(BaseModel):
    """Cakes a baker just finished, against a task or ad hoc.

    Without ``task_id`` the cake spec is required.
    """

    model_config = ConfigDict(frozen=True)

    task_id: Optional[UUID] = None
    cake_shape: str = ""
    cake_size: str = ""
    cake_flavor: str = ""
    quantity: int
    baker: str = ""
    quality_checks: Optional[QualityChecksDTO] = None
    notes: str = ""

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @model_validator(mode="after")
    def spec_or_task(self):
        if self.task_id is None and not all(
            (self.cake_shape, self.cake_size, self.cake_flavor)
        ):
            raise ValueError("Cake shape, size and flavor are required without a task.")
        return self


class ManualTaskDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    cake_shape: str
    cake_size: str
    cake_flavor: str
    quantity: int
    due_date: Optional[date] = None
    height: str = ""
    notes: str = ""

    @field_validator("cake_shape", "cake_size", "cake_flavor")
    @classmethod
    def required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Cake shape, size and flavor are required.")
        return v

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class SyncResultDTO(BaseModel):
    """Outcome of one aggregation run; ids are baking task ids."""

    model_config = ConfigDict(frozen=True)

    created: List[UUID] = Field(default_factory=list)
    updated: List[UUID] = Field(default_factory=list)
    cancelled: List[UUID] = Field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.cancelled)

    def summary(self) -> Dict[str, Any]:
        return {
            "created": len(self.created),
            "updated": len(self.updated),
            "cancelled": len(self.cancelled),
        }
