"""Pydantic v2 request/response schemas for plan endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PlanCreate(BaseModel):
    """Schema for creating a plan."""

    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    billing_cycle: str = Field(..., pattern="^(monthly|yearly)$")
    is_active: bool = True


class PlanUpdate(BaseModel):
    """Schema for partially updating a plan. At least one field is required."""

    name: str | None = Field(None, min_length=1, max_length=255)
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    billing_cycle: str | None = Field(None, pattern="^(monthly|yearly)$")
    is_active: bool | None = None

    @model_validator(mode="after")
    def _require_one_field(self) -> "PlanUpdate":
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one field must be provided")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PlanResponse(BaseModel):
    """Plan as exposed by the API."""

    id: uuid.UUID
    name: str
    price: Decimal
    billing_cycle: str
    currency: str
    provider_plan_id: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PlanDeleteResponse(BaseModel):
    message: str
    plan: PlanResponse
