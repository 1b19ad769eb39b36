"""SQLAlchemy models for the subscription API.

All models are imported here so that ``Base.metadata`` knows every table
before ``create_all`` runs. If you add a new model, import it in this file.
"""

from subscription_api.models.plan import Plan
from subscription_api.models.subscription import Subscription, SubscriptionStatus
from subscription_api.models.user import Role, User
from subscription_api.models.webhook_event import WebhookEvent

__all__ = [
    "Plan",
    "Role",
    "Subscription",
    "SubscriptionStatus",
    "User",
    "WebhookEvent",
]
