"""Plan API router: public catalog plus admin management."""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.api.deps import get_db, require_role
from subscription_api.models.user import Role
from subscription_api.paypal.client import PayPalClient, get_provider_gateway
from subscription_api.schemas.plan import (
    PlanCreate,
    PlanDeleteResponse,
    PlanResponse,
    PlanUpdate,
)
from subscription_api.services import plan_service

router = APIRouter(prefix="/api/plan", tags=["plans"])

_admin_only = [Depends(require_role(Role.ADMIN))]


@router.post(
    "",
    response_model=PlanResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=_admin_only,
)
async def create_plan(
    body: PlanCreate,
    db: AsyncSession = Depends(get_db),
    paypal: PayPalClient = Depends(get_provider_gateway),
) -> PlanResponse:
    """Create a plan. Paid plans are provisioned at PayPal first."""
    plan = await plan_service.create_plan(
        db,
        paypal,
        name=body.name,
        price=body.price,
        billing_cycle=body.billing_cycle,
        is_active=body.is_active,
    )
    return PlanResponse.model_validate(plan)


@router.get("", response_model=list[PlanResponse])
async def list_active_plans(db: AsyncSession = Depends(get_db)) -> list[PlanResponse]:
    """List active plans. Public."""
    plans = await plan_service.list_plans(db)
    return [PlanResponse.model_validate(p) for p in plans]


@router.get("/all", response_model=list[PlanResponse], dependencies=_admin_only)
async def list_all_plans(db: AsyncSession = Depends(get_db)) -> list[PlanResponse]:
    """List every plan, including deactivated ones (admin only)."""
    plans = await plan_service.list_plans(db, include_inactive=True)
    return [PlanResponse.model_validate(p) for p in plans]


@router.patch("/{plan_id}", response_model=PlanResponse, dependencies=_admin_only)
async def update_plan(
    plan_id: uuid.UUID,
    body: PlanUpdate,
    db: AsyncSession = Depends(get_db),
) -> PlanResponse:
    """Partially update a plan."""
    plan = await plan_service.update_plan(db, plan_id, body.model_dump(exclude_none=True))
    return PlanResponse.model_validate(plan)


@router.delete("/{plan_id}", response_model=PlanDeleteResponse, dependencies=_admin_only)
async def delete_plan(plan_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> PlanDeleteResponse:
    """Soft-delete a plan; existing subscriptions keep referencing it."""
    plan, changed = await plan_service.deactivate_plan(db, plan_id)
    message = "Plan deactivated" if changed else "Plan already inactive"
    return PlanDeleteResponse(message=message, plan=PlanResponse.model_validate(plan))
