"""Pydantic v2 request/response schemas for subscription endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from subscription_api.models.subscription import SubscriptionStatus
from subscription_api.schemas.plan import PlanResponse

# --- Request schemas ---


class CheckoutRequest(BaseModel):
    """Request to subscribe to a plan. Accepts ``planId`` or ``plan_id``."""

    plan_id: uuid.UUID = Field(..., alias="planId")

    model_config = ConfigDict(populate_by_name=True)


# --- Response schemas ---


class SubscriptionResponse(BaseModel):
    """The caller's single current subscription."""

    id: uuid.UUID
    user_id: uuid.UUID
    plan_id: uuid.UUID
    status: SubscriptionStatus
    provider_subscription_id: str | None = None
    period_start: datetime | None = None
    period_end: datetime | None = None
    cancelled_at: datetime | None = None
    plan: PlanResponse | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CheckoutResponse(BaseModel):
    """Checkout outcome: active (free plan) or pending with a PayPal approval URL."""

    message: str
    status: SubscriptionStatus
    subscription: SubscriptionResponse
    approval_url: str | None = None


class ReportResponse(BaseModel):
    """Subscriber-only report payload."""

    message: str
    user_id: uuid.UUID
    name: str
    plan_id: uuid.UUID
    plan: str
    status: SubscriptionStatus
    generated_at: datetime
