"""Shared API dependencies, re-exported for the routers.

Re-exports database session, authentication, gating and provider dependencies
so that router modules can import everything they need from one place::

    from subscription_api.api.deps import get_db, get_current_user
"""

from subscription_api.auth.dependencies import get_current_user, require_role
from subscription_api.billing.dependencies import require_active_subscription
from subscription_api.database import get_db
from subscription_api.paypal.client import get_provider_gateway

__all__ = [
    "get_db",
    "get_current_user",
    "require_role",
    "require_active_subscription",
    "get_provider_gateway",
]
