"""
Repository for provisioning retry queue items.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voicefleet.db.constants import RetryStatus
from voicefleet.db.provisioning_queue.model import RetryQueueItem
from voicefleet.utils.logger import logger


class RetryQueueRepository:
    """Repository for reading and writing retry queue items."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        tenant_id: str,
        plan_id: str | None,
        requested_count: int,
        last_error: str | None,
        next_attempt_at: datetime,
        orphaned_numbers: list[dict[str, Any]] | None = None,
    ) -> RetryQueueItem:
        item = RetryQueueItem(
            tenant_id=tenant_id,
            plan_id=plan_id,
            requested_count=requested_count,
            status=RetryStatus.PENDING.value,
            attempts=1,
            last_error=last_error,
            next_attempt_at=next_attempt_at,
            orphaned_numbers=orphaned_numbers or [],
        )
        self.session.add(item)
        await self.session.flush()
        await self.session.refresh(item)

        logger.info(
            "[RetryQueueRepository] Queued provisioning retry",
            id=item.id,
            tenant_id=tenant_id,
            requested_count=requested_count,
        )
        return item

    async def get(self, item_id: int) -> RetryQueueItem | None:
        result = await self.session.execute(
            select(RetryQueueItem).where(RetryQueueItem.id == item_id)
        )
        return result.scalar_one_or_none()

    async def list_due(
        self, now: datetime, max_attempts: int, limit: int
    ) -> list[RetryQueueItem]:
        """
        Get items that are ready for another attempt, oldest first.

        Args:
            now: Items scheduled at or before this time are due
            max_attempts: Items with this many attempts are excluded
            limit: Maximum items to return

        Returns:
            list[RetryQueueItem]: Due items
        """
        stmt = (
            select(RetryQueueItem)
            .where(
                RetryQueueItem.status.in_(
                    [RetryStatus.PENDING.value, RetryStatus.FAILED.value]
                )
            )
            .where(RetryQueueItem.next_attempt_at <= now)
            .where(RetryQueueItem.attempts < max_attempts)
            .order_by(RetryQueueItem.created_at, RetryQueueItem.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_tenant(self, tenant_id: str) -> list[RetryQueueItem]:
        stmt = (
            select(RetryQueueItem)
            .where(RetryQueueItem.tenant_id == tenant_id)
            .order_by(RetryQueueItem.created_at, RetryQueueItem.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
