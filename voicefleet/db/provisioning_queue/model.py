"""
Database model for the provisioning retry queue.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voicefleet.db.constants import RetryStatus
from voicefleet.db.database import Base


class RetryQueueItem(Base):
    """
    A provisioning pass that failed and is waiting to be retried.

    Items are never deleted. Once attempts reaches the configured maximum the
    item stays failed for an operator to inspect.
    """

    __tablename__ = "provisioning_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    plan_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    requested_count: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Numbers still to provision"
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RetryStatus.PENDING.value
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    next_attempt_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    # Purchased numbers whose import has not completed yet
    orphaned_numbers: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("idx_provisioning_queue_due", "status", "next_attempt_at"),
    )
