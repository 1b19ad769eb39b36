"""Payment provider contract consumed by checkout and webhook reconciliation.

The billing core never talks HTTP itself; it depends on this protocol so the
PayPal client can be swapped for a fake in tests.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

# Transport headers PayPal attaches to every webhook delivery (lower-cased).
REQUIRED_WEBHOOK_HEADERS: tuple[str, ...] = (
    "paypal-transmission-id",
    "paypal-transmission-time",
    "paypal-transmission-sig",
    "paypal-cert-url",
    "paypal-auth-algo",
)


@dataclass(frozen=True)
class SignatureVerification:
    """Outcome of a webhook authenticity check."""

    ok: bool
    reason: str | None = None


@dataclass(frozen=True)
class SubscriptionDetail:
    """Authoritative provider-side snapshot of a subscription."""

    status: str | None
    start_time: datetime | None = None
    next_billing_time: datetime | None = None


@dataclass(frozen=True)
class CreatedSubscription:
    """Provider subscription created at checkout, awaiting buyer approval."""

    provider_subscription_id: str
    approval_url: str | None


class ProviderGateway(Protocol):
    """Operations the billing core needs from the payment provider."""

    async def verify_signature(
        self, headers: Mapping[str, str], body: dict[str, Any]
    ) -> SignatureVerification: ...

    async def fetch_subscription_detail(
        self, provider_subscription_id: str
    ) -> SubscriptionDetail: ...

    async def create_subscription(
        self, provider_plan_id: str, custom_id: str
    ) -> CreatedSubscription: ...


def missing_webhook_headers(headers: Mapping[str, str]) -> list[str]:
    """Return the required transport headers absent from ``headers``."""
    lowered = {key.lower(): value for key, value in headers.items()}
    return [name for name in REQUIRED_WEBHOOK_HEADERS if not lowered.get(name)]
