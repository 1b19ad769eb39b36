"""Which provider notifications have already been applied."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.models.webhook_event import WebhookEvent

logger = logging.getLogger(__name__)


async def is_event_processed(db: AsyncSession, event_id: str) -> bool:
    """Return True if a ledger entry exists for ``event_id``."""
    result = await db.execute(
        select(WebhookEvent.id).where(WebhookEvent.event_id == event_id)
    )
    return result.scalar_one_or_none() is not None


async def record_event(
    db: AsyncSession,
    event_id: str,
    event_type: str,
    provider: str = "paypal",
) -> bool:
    """Insert the ledger entry for a fully applied notification.

    The insert runs in a SAVEPOINT so a uniqueness violation (a concurrent
    delivery of the same notification got there first) only discards the
    entry, not the reconciliation written earlier in the same transaction.

    Returns:
        True if this call created the entry, False if it already existed.
    """
    try:
        async with db.begin_nested():
            db.add(WebhookEvent(provider=provider, event_id=event_id, event_type=event_type))
    except IntegrityError:
        logger.info("Webhook event %s already recorded by a concurrent delivery", event_id)
        return False
    return True
