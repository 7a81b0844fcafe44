"""
Database model for tenant voice assistants.
"""

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from voicefleet.db.constants import AssistantStatus
from voicefleet.db.database import Base


class AssistantResource(Base):
    """
    A tenant's voice AI assistant.

    Created lazily on first provisioning; at most one active row per tenant.
    """

    __tablename__ = "tenant_assistants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    external_voice_id: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="Voice AI assistant id"
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AssistantStatus.ACTIVE.value
    )

    # Plan-dependent capabilities
    voice_cloning_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    custom_knowledge_base: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    max_minutes_per_call: Mapped[int] = mapped_column(
        Integer, nullable=False, default=10
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (Index("idx_assistant_tenant_status", "tenant_id", "status"),)
