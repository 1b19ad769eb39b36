"""Checkout orchestration — start (or restart) a user's subscription to a plan.

Free plans are activated locally right away. Paid plans are first created at
PayPal; only once that succeeds is the local row overwritten with a pending
subscription, so a provider failure never clobbers the user's previous state.
Activation of a paid plan is left to the webhook pipeline.
"""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.billing.gateway import ProviderGateway
from subscription_api.billing.reconciler import utcnow_naive
from subscription_api.errors import FailedPreconditionError
from subscription_api.models.subscription import Subscription, SubscriptionStatus
from subscription_api.services.plan_service import get_active_plan
from subscription_api.services.subscription_service import upsert_subscription_for_user

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    """Outcome of a checkout: the written row, plus an approval URL for paid plans."""

    status: SubscriptionStatus
    subscription: Subscription
    approval_url: str | None = None


async def checkout(
    db: AsyncSession,
    gateway: ProviderGateway,
    user_id: uuid.UUID,
    plan_id: uuid.UUID,
) -> CheckoutResult:
    """Subscribe ``user_id`` to ``plan_id``, overwriting any previous subscription.

    Raises:
        NotFoundError: The plan does not exist or is inactive.
        FailedPreconditionError: A paid plan has not been provisioned at PayPal.
        UpstreamFailureError: PayPal refused or failed to create the subscription.
    """
    plan = await get_active_plan(db, plan_id)

    if plan.is_free:
        subscription = await upsert_subscription_for_user(
            db,
            user_id=user_id,
            plan_id=plan.id,
            status=SubscriptionStatus.ACTIVE,
            provider_subscription_id=None,
            period_start=utcnow_naive(),
            period_end=None,
            cancelled_at=None,
        )
        logger.info("User %s activated free plan %s", user_id, plan.name)
        return CheckoutResult(status=SubscriptionStatus.ACTIVE, subscription=subscription)

    if not plan.provider_plan_id:
        raise FailedPreconditionError(
            "This paid plan is not synced with PayPal (missing paypalPlanId)."
        )

    # Nothing is written locally until PayPal has accepted the subscription
    created = await gateway.create_subscription(plan.provider_plan_id, str(user_id))

    subscription = await upsert_subscription_for_user(
        db,
        user_id=user_id,
        plan_id=plan.id,
        status=SubscriptionStatus.PENDING,
        provider_subscription_id=created.provider_subscription_id,
    )
    logger.info(
        "User %s started checkout for plan %s (PayPal subscription %s)",
        user_id,
        plan.name,
        created.provider_subscription_id,
    )
    return CheckoutResult(
        status=SubscriptionStatus.PENDING,
        subscription=subscription,
        approval_url=created.approval_url,
    )
