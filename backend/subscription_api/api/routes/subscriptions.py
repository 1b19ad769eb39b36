"""Checkout, current subscription and the subscriber report."""

import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.api.deps import (
    get_current_user,
    get_db,
    get_provider_gateway,
    require_active_subscription,
)
from subscription_api.billing.checkout import checkout
from subscription_api.billing.gateway import ProviderGateway
from subscription_api.billing.reconciler import utcnow_naive
from subscription_api.errors import InvalidInputError, NotFoundError
from subscription_api.models.subscription import Subscription, SubscriptionStatus
from subscription_api.models.user import User
from subscription_api.schemas.subscription import (
    CheckoutRequest,
    CheckoutResponse,
    ReportResponse,
    SubscriptionResponse,
)
from subscription_api.services.subscription_service import get_subscription_for_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscription", tags=["subscriptions"])


async def _parse_checkout_body(request: Request) -> CheckoutRequest:
    # Validated by hand so a bad body is a 400 rather than FastAPI's 422
    try:
        payload = await request.json()
    except ValueError:
        raise InvalidInputError("Request body must be valid JSON") from None

    try:
        return CheckoutRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInputError(
            "planId is required and must be a valid id",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from None


@router.post("", response_model=CheckoutResponse)
async def subscribe(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: ProviderGateway = Depends(get_provider_gateway),
    current_user: User = Depends(get_current_user),
) -> CheckoutResponse:
    """Subscribe the caller to a plan.

    Free plans are active immediately; paid plans stay pending until PayPal
    confirms the subscription through a webhook, and the response carries the
    URL the buyer must visit to approve it.
    """
    body = await _parse_checkout_body(request)
    result = await checkout(db, gateway, current_user.id, body.plan_id)
    await db.refresh(result.subscription, attribute_names=["plan"])

    if result.status is SubscriptionStatus.ACTIVE:
        message = "Subscribed to free plan"
    else:
        message = "Subscription created, approve it with PayPal to activate"

    return CheckoutResponse(
        message=message,
        status=result.status,
        subscription=SubscriptionResponse.model_validate(result.subscription),
        approval_url=result.approval_url,
    )


@router.get("/me", response_model=SubscriptionResponse)
async def get_my_subscription(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SubscriptionResponse:
    """Return the caller's current subscription."""
    subscription = await get_subscription_for_user(db, current_user.id)
    if subscription is None:
        raise NotFoundError("No subscription found")
    return SubscriptionResponse.model_validate(subscription)


@router.get("/report", response_model=ReportResponse)
async def get_report(
    current_user: User = Depends(get_current_user),
    subscription: Subscription = Depends(require_active_subscription),
) -> ReportResponse:
    """Subscriber-only report (placeholder content)."""
    return ReportResponse(
        message="Subscriber report generated successfully",
        user_id=current_user.id,
        name=current_user.name,
        plan_id=subscription.plan_id,
        plan=subscription.plan.name,
        status=subscription.status,
        generated_at=utcnow_naive(),
    )
