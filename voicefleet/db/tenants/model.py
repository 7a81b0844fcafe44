"""
Database model for tenants (paying accounts).
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from voicefleet.db.constants import SubscriptionStatus
from voicefleet.db.database import Base


class Tenant(Base):
    """A paying account and the plan it is subscribed to."""

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    plan_id: Mapped[str | None] = mapped_column(
        String(50), nullable=True, comment="Current subscription plan"
    )
    subscription_status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=SubscriptionStatus.ACTIVE.value
    )
    region: Mapped[str] = mapped_column(
        String(2), nullable=False, default="US", comment="ISO country code"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
