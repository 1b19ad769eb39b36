"""Subscription store — one row per user, written atomically.

Checkout writes through :func:`upsert_subscription_for_user` (keyed on the
user) and webhook reconciliation through :func:`apply_reconciliation` (keyed
on the provider subscription id). Both are single statements, so there is no
read-modify-write window between concurrent requests.
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.billing.reconciler import ReconciledState
from subscription_api.models.subscription import Subscription, SubscriptionStatus

logger = logging.getLogger(__name__)


def _dialect_insert(db: AsyncSession):
    """Pick the INSERT construct that supports ON CONFLICT for the bound dialect."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite.insert
    return postgresql.insert


async def get_subscription_for_user(
    db: AsyncSession, user_id: uuid.UUID
) -> Subscription | None:
    """Return the user's current subscription, if any."""
    result = await db.execute(
        select(Subscription).where(Subscription.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_subscription_by_provider_id(
    db: AsyncSession, provider_subscription_id: str
) -> Subscription | None:
    """Look up a subscription by its PayPal subscription id."""
    result = await db.execute(
        select(Subscription).where(
            Subscription.provider_subscription_id == provider_subscription_id
        )
    )
    return result.scalar_one_or_none()


async def get_active_subscription_for_user(
    db: AsyncSession, user_id: uuid.UUID
) -> Subscription | None:
    """Return the user's subscription only if it is currently active."""
    result = await db.execute(
        select(Subscription).where(
            Subscription.user_id == user_id,
            Subscription.status == SubscriptionStatus.ACTIVE,
        )
    )
    return result.scalar_one_or_none()


async def upsert_subscription_for_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    plan_id: uuid.UUID,
    status: SubscriptionStatus,
    provider_subscription_id: str | None = None,
    period_start: datetime | None = None,
    period_end: datetime | None = None,
    cancelled_at: datetime | None = None,
) -> Subscription:
    """Create or fully overwrite the user's single subscription row."""
    values = {
        "plan_id": plan_id,
        "status": status,
        "provider_subscription_id": provider_subscription_id,
        "period_start": period_start,
        "period_end": period_end,
        "cancelled_at": cancelled_at,
    }
    insert = _dialect_insert(db)
    stmt = (
        insert(Subscription)
        .values(id=uuid.uuid4(), user_id=user_id, **values)
        .on_conflict_do_update(
            index_elements=[Subscription.user_id],
            set_={**values, "updated_at": func.now()},
        )
        .returning(Subscription)
    )
    result = await db.scalars(stmt, execution_options={"populate_existing": True})
    subscription = result.one()

    logger.info(
        "Upserted subscription %s for user %s: status=%s, provider_id=%s",
        subscription.id,
        user_id,
        status.value,
        provider_subscription_id,
    )
    return subscription


async def apply_reconciliation(
    db: AsyncSession,
    provider_subscription_id: str,
    state: ReconciledState,
) -> Subscription | None:
    """Apply a reconciled state to the row linked to ``provider_subscription_id``.

    Returns ``None`` without creating anything when no local row matches.
    """
    stmt = (
        update(Subscription)
        .where(Subscription.provider_subscription_id == provider_subscription_id)
        .values(
            status=state.status,
            period_start=state.period_start,
            period_end=state.period_end,
            cancelled_at=state.cancelled_at,
            updated_at=func.now(),
        )
        .returning(Subscription)
    )
    result = await db.scalars(stmt, execution_options={"populate_existing": True})
    subscription = result.one_or_none()

    if subscription is None:
        logger.warning(
            "No local subscription found for provider subscription %s",
            provider_subscription_id,
        )
        return None

    logger.info(
        "Reconciled subscription %s (provider %s): status=%s",
        subscription.id,
        provider_subscription_id,
        state.status.value,
    )
    return subscription
