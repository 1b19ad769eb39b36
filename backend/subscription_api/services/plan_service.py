"""Plan catalog CRUD and PayPal billing-plan provisioning."""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.config import settings
from subscription_api.errors import ConflictError, FailedPreconditionError, NotFoundError
from subscription_api.models.plan import Plan
from subscription_api.paypal.client import PayPalClient

logger = logging.getLogger(__name__)


async def get_active_plan(db: AsyncSession, plan_id: uuid.UUID) -> Plan:
    """Return an active plan by id.

    Raises:
        NotFoundError: If the plan does not exist or is inactive.
    """
    result = await db.execute(
        select(Plan).where(Plan.id == plan_id, Plan.is_active.is_(True))
    )
    plan = result.scalar_one_or_none()
    if plan is None:
        raise NotFoundError("Plan not found or inactive")
    return plan


async def get_plan(db: AsyncSession, plan_id: uuid.UUID) -> Plan:
    """Return a plan by id, active or not."""
    plan = await db.get(Plan, plan_id)
    if plan is None:
        raise NotFoundError("Plan not found")
    return plan


async def list_plans(db: AsyncSession, include_inactive: bool = False) -> list[Plan]:
    """List plans, cheapest first; only active ones unless ``include_inactive``."""
    query = select(Plan).order_by(Plan.price, Plan.name)
    if not include_inactive:
        query = query.where(Plan.is_active.is_(True))
    result = await db.execute(query)
    return list(result.scalars().all())


async def _ensure_unique_name(
    db: AsyncSession, name: str, exclude_id: uuid.UUID | None = None
) -> None:
    query = select(Plan.id).where(Plan.name == name)
    if exclude_id is not None:
        query = query.where(Plan.id != exclude_id)
    result = await db.execute(query)
    if result.scalar_one_or_none() is not None:
        raise ConflictError("Plan already exists")


async def create_plan(
    db: AsyncSession,
    paypal: PayPalClient,
    name: str,
    price: Decimal,
    billing_cycle: str,
    is_active: bool = True,
) -> Plan:
    """Create a plan; paid plans are provisioned at PayPal before being saved."""
    await _ensure_unique_name(db, name)

    provider_plan_id: str | None = None
    if price > 0:
        if not settings.paypal_product_id:
            raise FailedPreconditionError(
                "PAYPAL_PRODUCT_ID is not configured; run the product init first."
            )
        paypal_plan = await paypal.create_plan(
            product_id=settings.paypal_product_id,
            name=name,
            price=price,
            currency=settings.paypal_currency,
            billing_cycle=billing_cycle,
        )
        provider_plan_id = paypal_plan["id"]
        logger.info("Provisioned PayPal plan %s for %r", provider_plan_id, name)

    plan = Plan(
        name=name,
        price=price,
        billing_cycle=billing_cycle,
        currency=settings.paypal_currency,
        is_active=is_active,
        provider_plan_id=provider_plan_id,
    )
    db.add(plan)
    await db.flush()
    await db.refresh(plan)
    return plan


async def update_plan(db: AsyncSession, plan_id: uuid.UUID, updates: dict) -> Plan:
    """Apply a partial update to a plan.

    Price or billing-cycle changes are stored locally only; the linked PayPal
    plan keeps its original pricing.
    """
    plan = await get_plan(db, plan_id)

    if updates.get("name"):
        await _ensure_unique_name(db, updates["name"], exclude_id=plan.id)

    for field, value in updates.items():
        setattr(plan, field, value)

    await db.flush()
    await db.refresh(plan)
    return plan


async def deactivate_plan(db: AsyncSession, plan_id: uuid.UUID) -> tuple[Plan, bool]:
    """Soft-delete a plan.

    Returns:
        The plan and whether this call changed it (False if already inactive).
    """
    plan = await get_plan(db, plan_id)
    if not plan.is_active:
        return plan, False

    plan.is_active = False
    await db.flush()
    await db.refresh(plan)
    logger.info("Deactivated plan %s (%s)", plan.id, plan.name)
    return plan, True
