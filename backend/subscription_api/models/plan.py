"""Purchasable subscription plans."""

from decimal import Decimal

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from subscription_api.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Plan(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A subscription plan, optionally linked to a provider-side billing plan."""

    __tablename__ = "plans"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    billing_cycle: Mapped[str] = mapped_column(String(20), nullable=False)  # monthly, yearly
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    # Filled once the plan is provisioned at PayPal ("P-...")
    provider_plan_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def is_free(self) -> bool:
        """Free plans are activated locally and never routed through the provider."""
        return Decimal(self.price) == 0 or self.name.strip().lower() == "free"

    def __repr__(self) -> str:
        return f"<Plan(id={self.id}, name={self.name!r}, price={self.price}, active={self.is_active})>"
