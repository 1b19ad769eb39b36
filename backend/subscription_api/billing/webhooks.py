"""PayPal webhook intake: verify, dedupe, fetch, reconcile, then record.

Each step is a hard precondition for the next:

1. Verify the delivery with PayPal (400 on failure, nothing touched).
2. Reject deliveries without an event id (400); short-circuit ones already in
   the ledger (200).
3. Resolve the PayPal subscription id from the payload; unresolvable
   notifications are acknowledged (200) but not recorded.
4. Fetch the authoritative subscription from PayPal. The payload is only
   trusted for routing, never for status values.
5. Reconcile and apply atomically to the matching local row (a missing row is
   reported, not an error).
6. Record the event in the ledger, only after reconciliation succeeded.

Any exception past step 3 rolls the transaction back and answers 500 so
PayPal retries; the ledger guarantees a retry converges.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.billing.gateway import ProviderGateway
from subscription_api.billing.ledger import is_event_processed, record_event
from subscription_api.billing.reconciler import reconcile
from subscription_api.errors import UpstreamFailureError
from subscription_api.services.subscription_service import apply_reconciliation

logger = logging.getLogger(__name__)

SUBSCRIPTION_EVENT_PREFIX = "BILLING.SUBSCRIPTION."


@dataclass
class WebhookResult:
    """HTTP status and JSON body to answer the provider with."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


def resolve_subscription_id(event: Mapping[str, Any]) -> str | None:
    """Find the PayPal subscription id a notification refers to.

    ``PAYMENT.SALE.*`` events carry it as ``resource.billing_agreement_id``,
    which wins when present; ``BILLING.SUBSCRIPTION.*`` events carry it as
    the resource's own ``id``.
    """
    resource = event.get("resource")
    if not isinstance(resource, Mapping):
        return None

    billing_agreement_id = resource.get("billing_agreement_id")
    if billing_agreement_id:
        return str(billing_agreement_id)

    event_type = event.get("event_type")
    if isinstance(event_type, str) and event_type.startswith(SUBSCRIPTION_EVENT_PREFIX):
        resource_id = resource.get("id")
        return str(resource_id) if resource_id else None

    return None


def _parse_body(raw_body: bytes) -> dict[str, Any] | None:
    try:
        event = json.loads(raw_body or b"null")
    except (UnicodeDecodeError, ValueError):
        return None
    return event if isinstance(event, dict) else None


async def handle_notification(
    db: AsyncSession,
    gateway: ProviderGateway,
    headers: Mapping[str, str],
    raw_body: bytes,
) -> WebhookResult:
    """Process one PayPal webhook delivery and return the response to send."""
    event = _parse_body(raw_body)
    if event is None:
        logger.warning("Webhook rejected: body is not a JSON object")
        return WebhookResult(400, {"message": "Invalid payload"})

    event_id = event.get("id")
    event_type = event.get("event_type")
    resource = event.get("resource") if isinstance(event.get("resource"), dict) else {}

    try:
        # 1. Authenticity
        verification = await gateway.verify_signature(headers, event)
        if not verification.ok:
            logger.warning(
                "Webhook signature verification failed (event=%s): %s",
                event_id,
                verification.reason,
            )
            return WebhookResult(
                400,
                {"message": "Invalid webhook signature", "reason": verification.reason},
            )

        # 2. Idempotency gate
        if not event_id:
            return WebhookResult(400, {"message": "Missing event id"})
        event_id = str(event_id)

        if await is_event_processed(db, event_id):
            logger.info("Webhook event %s already processed, skipping", event_id)
            return WebhookResult(200, {"message": "Event already processed", "eventId": event_id})

        # 3. Routing
        provider_subscription_id = resolve_subscription_id(event)
        if not provider_subscription_id:
            logger.info("Webhook event %s (%s) has no subscription id, ignoring", event_id, event_type)
            return WebhookResult(
                200,
                {"message": "No subscription id in webhook (ignored)", "eventType": event_type},
            )

        # 4. Authoritative snapshot
        detail = await gateway.fetch_subscription_detail(provider_subscription_id)

        # 5. Reconcile
        state = reconcile(detail.status, detail.start_time, detail.next_billing_time)
        subscription = await apply_reconciliation(db, provider_subscription_id, state)

        # 6. Ledger
        recorded = await record_event(db, event_id, str(event_type or ""))
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.error(
            "PayPal webhook processing failed: event_id=%s event_type=%s resource_id=%s "
            "billing_agreement_id=%s upstream_status=%s payload=%s",
            event_id,
            event_type,
            resource.get("id"),
            resource.get("billing_agreement_id"),
            getattr(exc, "upstream_status", None),
            getattr(exc, "payload", None),
            exc_info=not isinstance(exc, UpstreamFailureError),
        )
        return WebhookResult(500, {"message": "Server error"})

    if not recorded:
        # a concurrent delivery of the same event recorded it first
        return WebhookResult(200, {"message": "Event already processed", "eventId": event_id})

    logger.info(
        "Processed webhook event %s (%s): subscription %s -> %s (found=%s)",
        event_id,
        event_type,
        provider_subscription_id,
        state.status.value,
        subscription is not None,
    )
    return WebhookResult(
        200,
        {
            "message": "Webhook processed",
            "eventType": event_type,
            "providerSubscriptionId": provider_subscription_id,
            "status": state.status.value,
            "foundSubscription": subscription is not None,
        },
    )
