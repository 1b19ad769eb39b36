"""Test doubles and row factories shared by the test modules."""

import json
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.auth.jwt import create_user_token
from subscription_api.auth.passwords import hash_password
from subscription_api.billing.gateway import (
    CreatedSubscription,
    SignatureVerification,
    SubscriptionDetail,
    missing_webhook_headers,
)
from subscription_api.models.plan import Plan
from subscription_api.models.subscription import Subscription, SubscriptionStatus
from subscription_api.models.user import Role, User

VALID_WEBHOOK_HEADERS = {
    "paypal-transmission-id": "tx-123",
    "paypal-transmission-time": "2025-01-01T00:00:00Z",
    "paypal-transmission-sig": "sig",
    "paypal-cert-url": "https://api.paypal.com/cert.pem",
    "paypal-auth-algo": "SHA256withRSA",
}


# ---------------------------------------------------------------------------
# Fake payment provider
# ---------------------------------------------------------------------------


@dataclass
class FakeGateway:
    """In-memory stand-in for the PayPal client.

    Configure ``details`` (provider id -> snapshot), or set one of the
    ``*_error`` attributes to make the matching call raise.
    """

    signature_ok: bool = True
    details: dict[str, SubscriptionDetail] = field(default_factory=dict)
    fetch_error: Exception | None = None
    create_error: Exception | None = None
    next_subscription_id: str = "I-NEW"
    approval_url: str = "https://www.sandbox.paypal.com/webapps/billing/subscriptions?ba_token=BA-1"
    verify_calls: list[dict[str, Any]] = field(default_factory=list)
    fetch_calls: list[str] = field(default_factory=list)
    create_calls: list[tuple[str, str]] = field(default_factory=list)
    created_plans: list[dict[str, Any]] = field(default_factory=list)

    async def verify_signature(self, headers: Mapping[str, str], body: dict[str, Any]) -> SignatureVerification:
        self.verify_calls.append(body)
        missing = missing_webhook_headers(headers)
        if missing:
            return SignatureVerification(ok=False, reason=f"missing headers: {', '.join(missing)}")
        if not self.signature_ok:
            return SignatureVerification(ok=False, reason="verification_status=FAILURE")
        return SignatureVerification(ok=True)

    async def fetch_subscription_detail(self, provider_subscription_id: str) -> SubscriptionDetail:
        self.fetch_calls.append(provider_subscription_id)
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.details[provider_subscription_id]

    async def create_subscription(self, provider_plan_id: str, custom_id: str) -> CreatedSubscription:
        self.create_calls.append((provider_plan_id, custom_id))
        if self.create_error is not None:
            raise self.create_error
        return CreatedSubscription(
            provider_subscription_id=self.next_subscription_id,
            approval_url=self.approval_url,
        )

    async def create_product(self, name: str, description: str) -> dict[str, Any]:
        return {"id": "PROD-TEST", "name": name, "description": description}

    async def create_plan(self, **kwargs: Any) -> dict[str, Any]:
        self.created_plans.append(kwargs)
        return {"id": f"P-{len(self.created_plans)}", "status": "ACTIVE"}


def webhook_body(
    event_id: str | None = "WH-1",
    event_type: str = "BILLING.SUBSCRIPTION.ACTIVATED",
    resource: dict[str, Any] | None = None,
) -> bytes:
    """Serialize a PayPal-style notification."""
    event: dict[str, Any] = {
        "event_type": event_type,
        "resource": {"id": "I-1"} if resource is None else resource,
    }
    if event_id is not None:
        event["id"] = event_id
    return json.dumps(event).encode()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


async def create_user(
    db_session: AsyncSession,
    role: Role = Role.USER,
    password: str = "testpass123",
    email: str | None = None,
) -> User:
    """Create and commit a user directly in the DB."""
    unique = uuid.uuid4().hex[:8]
    user = User(
        name=f"Test {role.value.title()}",
        email=email or f"{role.value}-{unique}@test.com",
        hashed_password=hash_password(password),
        address="Jl. Testing 123",
        role=role,
    )
    db_session.add(user)
    await db_session.commit()
    return user


async def create_plan(
    db_session: AsyncSession,
    name: str | None = None,
    price: str = "9.99",
    provider_plan_id: str | None = "P-TEST",
    is_active: bool = True,
) -> Plan:
    """Create and commit a plan directly in the DB."""
    plan = Plan(
        name=name or f"plan-{uuid.uuid4().hex[:8]}",
        price=Decimal(price),
        billing_cycle="monthly",
        currency="EUR",
        provider_plan_id=provider_plan_id,
        is_active=is_active,
    )
    db_session.add(plan)
    await db_session.commit()
    return plan


async def create_subscription(
    db_session: AsyncSession,
    user: User,
    plan: Plan,
    status: SubscriptionStatus = SubscriptionStatus.PENDING,
    provider_subscription_id: str | None = None,
    **fields: Any,
) -> Subscription:
    """Create and commit a subscription row directly in the DB."""
    subscription = Subscription(
        user_id=user.id,
        plan_id=plan.id,
        status=status,
        provider_subscription_id=provider_subscription_id,
        **fields,
    )
    db_session.add(subscription)
    await db_session.commit()
    await db_session.refresh(subscription)
    return subscription


def bearer(user: User) -> dict[str, str]:
    """Return Authorization headers for ``user``."""
    token = create_user_token(str(user.id), user.name, user.role.value)
    return {"Authorization": f"Bearer {token}"}
