"""
Database models for the pre-purchased phone number pool.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voicefleet.db.constants import PoolEntryStatus
from voicefleet.db.database import Base


class PoolEntry(Base):
    """
    A pre-purchased number held in shared inventory.

    assigned_tenant_id is exclusive: it is set while the entry is reserved or
    assigned and cleared when the entry goes back to the pool.
    """

    __tablename__ = "phone_number_pool"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    phone_number: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True, comment="Phone number (E.164 format)"
    )
    region: Mapped[str] = mapped_column(
        String(2), nullable=False, comment="ISO country code"
    )
    carrier: Mapped[str] = mapped_column(
        String(50), nullable=False, comment="Carrier name used when importing"
    )
    external_carrier_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="Carrier-side id (e.g. DID id)"
    )
    external_voice_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Voice AI phone number id, set on first import",
    )
    assigned_tenant_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PoolEntryStatus.AVAILABLE.value
    )
    reserved_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    assigned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    released_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    __table_args__ = (Index("idx_pool_region_status", "region", "status"),)


class PoolAssignmentHistory(Base):
    """Audit trail of reservations, assignments and releases."""

    __tablename__ = "number_assignment_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pool_entry_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
