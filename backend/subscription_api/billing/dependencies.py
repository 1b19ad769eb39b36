"""Restrict routes to users with an active subscription."""

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.auth.dependencies import get_current_user
from subscription_api.database import get_db
from subscription_api.errors import UnauthorizedError
from subscription_api.models.subscription import Subscription
from subscription_api.models.user import User
from subscription_api.services.subscription_service import get_active_subscription_for_user

logger = logging.getLogger(__name__)


async def require_active_subscription(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Subscription:
    """Return the caller's active subscription or raise 403."""
    subscription = await get_active_subscription_for_user(db, user.id)
    if subscription is None:
        logger.info("User %s denied: no active subscription", user.id)
        raise UnauthorizedError("Active subscription required")
    return subscription
