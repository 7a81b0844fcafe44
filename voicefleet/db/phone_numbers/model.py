"""
Database model for tenant phone number resources.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from voicefleet.db.constants import PhoneResourceStatus, PhoneSource
from voicefleet.db.database import Base


class PhoneResource(Base):
    """
    Links one phone number to its carrier and voice AI identities for a tenant.

    Rows are never deleted; a released number keeps its row with
    status=released and a released_at timestamp.
    """

    __tablename__ = "tenant_phone_numbers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone_number: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="Phone number (E.164 format)"
    )
    external_carrier_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="Carrier id, e.g. Twilio PN sid"
    )
    external_voice_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="Voice AI phone number id"
    )
    assigned_assistant_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="Voice AI assistant id routed to"
    )
    source: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PhoneSource.CARRIER.value
    )
    pool_entry_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    label: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PhoneResourceStatus.ACTIVE.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    released_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (Index("idx_phone_tenant_status", "tenant_id", "status"),)

    @property
    def is_active(self) -> bool:
        return self.status == PhoneResourceStatus.ACTIVE.value

    @property
    def is_pool_number(self) -> bool:
        return self.source == PhoneSource.POOL.value
