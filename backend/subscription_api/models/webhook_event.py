"""Webhook event model — idempotency ledger of applied provider notifications.

A row exists only once the notification has been fully applied. The unique
constraint on ``event_id`` is what stops two concurrent deliveries of the same
notification from both being recorded.
"""

from datetime import datetime

from sqlalchemy import String, func
from sqlalchemy.orm import Mapped, mapped_column

from subscription_api.database import Base, UUIDPrimaryKeyMixin


class WebhookEvent(UUIDPrimaryKeyMixin, Base):
    """A processed provider notification."""

    __tablename__ = "webhook_events"

    provider: Mapped[str] = mapped_column(String(50), nullable=False, default="paypal")
    event_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)  # e.g. "WH-..."
    event_type: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    def __repr__(self) -> str:
        return f"<WebhookEvent {self.event_id} ({self.event_type})>"
