"""Status reconciler — derive local subscription state from a provider snapshot.

``reconcile`` is pure: it never reads the previous local row. Every webhook
re-fetches the authoritative snapshot, so recomputing all fields from scratch
converges no matter how many times, or in which order, notifications arrive.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from subscription_api.models.subscription import SubscriptionStatus

# Provider status (upper-cased) -> local status. Anything else is pending.
PROVIDER_STATUS_MAP: dict[str, SubscriptionStatus] = {
    "ACTIVE": SubscriptionStatus.ACTIVE,
    "CANCELLED": SubscriptionStatus.CANCELLED,
    "EXPIRED": SubscriptionStatus.EXPIRED,
    "SUSPENDED": SubscriptionStatus.EXPIRED,
}


@dataclass(frozen=True)
class ReconciledState:
    """Target local state for one subscription row."""

    status: SubscriptionStatus
    period_start: datetime | None
    period_end: datetime | None
    cancelled_at: datetime | None


def utcnow_naive() -> datetime:
    """Current UTC time as a naive datetime (matches the DB columns)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def map_provider_status(provider_status: str | None) -> SubscriptionStatus:
    """Map a provider status string to a local status (case-insensitive, total)."""
    return PROVIDER_STATUS_MAP.get(str(provider_status or "").strip().upper(), SubscriptionStatus.PENDING)


def reconcile(
    provider_status: str | None,
    provider_start_time: datetime | None,
    provider_next_billing_time: datetime | None,
    now: datetime | None = None,
) -> ReconciledState:
    """Compute the local subscription state for a provider snapshot.

    - ``period_start`` is only kept while the subscription is active.
    - ``period_end`` mirrors the next billing time whenever the provider reports one.
    - ``cancelled_at`` is stamped with ``now`` only for cancelled subscriptions.
    """
    status = map_provider_status(provider_status)
    is_active = status is SubscriptionStatus.ACTIVE
    is_cancelled = status is SubscriptionStatus.CANCELLED

    return ReconciledState(
        status=status,
        period_start=provider_start_time if is_active else None,
        period_end=provider_next_billing_time,
        cancelled_at=(now or utcnow_naive()) if is_cancelled else None,
    )
