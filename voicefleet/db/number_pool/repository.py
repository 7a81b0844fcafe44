"""
Repository for the phone number pool.

Every state change on a pool entry is a conditional UPDATE so that concurrent
callers can never hand the same entry to two tenants.
"""

from datetime import UTC, datetime, timedelta

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from voicefleet.db.constants import PoolAction, PoolEntryStatus
from voicefleet.db.number_pool.model import PoolAssignmentHistory, PoolEntry
from voicefleet.utils.logger import logger


class NumberPoolRepository:
    """Repository for pool entries and their assignment history."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, entry_id: int) -> PoolEntry | None:
        # Conditional updates bypass the identity map, so always reload
        result = await self.session.execute(
            select(PoolEntry)
            .where(PoolEntry.id == entry_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def add(
        self,
        phone_number: str,
        region: str,
        carrier: str,
        external_carrier_id: str | None = None,
        external_voice_id: str | None = None,
        notes: str | None = None,
    ) -> PoolEntry:
        entry = PoolEntry(
            phone_number=phone_number,
            region=region,
            carrier=carrier,
            external_carrier_id=external_carrier_id,
            external_voice_id=external_voice_id,
            status=PoolEntryStatus.AVAILABLE.value,
            notes=notes,
        )
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def list_available_ids(self, region: str, limit: int = 10) -> list[int]:
        """Candidate entry ids in a region, oldest first."""
        stmt = (
            select(PoolEntry.id)
            .where(PoolEntry.region == region)
            .where(PoolEntry.status == PoolEntryStatus.AVAILABLE.value)
            .where(PoolEntry.assigned_tenant_id.is_(None))
            .order_by(PoolEntry.created_at, PoolEntry.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def claim(self, entry_id: int, tenant_id: str) -> bool:
        """
        Assign an entry to a tenant if nobody else holds it.

        Succeeds when the entry is unowned and available, or when it is
        reserved for this same tenant.

        Returns:
            bool: True if this call won the entry
        """
        now = datetime.now(UTC)
        stmt = (
            update(PoolEntry)
            .where(PoolEntry.id == entry_id)
            .where(
                or_(
                    and_(
                        PoolEntry.assigned_tenant_id.is_(None),
                        PoolEntry.status == PoolEntryStatus.AVAILABLE.value,
                    ),
                    and_(
                        PoolEntry.assigned_tenant_id == tenant_id,
                        PoolEntry.status == PoolEntryStatus.RESERVED.value,
                    ),
                )
            )
            .values(
                assigned_tenant_id=tenant_id,
                status=PoolEntryStatus.ASSIGNED.value,
                assigned_at=now,
                reserved_until=None,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def reserve(self, entry_id: int, tenant_id: str, until: datetime) -> bool:
        """Hold an available entry for a tenant until the given time."""
        stmt = (
            update(PoolEntry)
            .where(PoolEntry.id == entry_id)
            .where(PoolEntry.assigned_tenant_id.is_(None))
            .where(PoolEntry.status == PoolEntryStatus.AVAILABLE.value)
            .values(
                assigned_tenant_id=tenant_id,
                status=PoolEntryStatus.RESERVED.value,
                reserved_until=until,
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def find_reserved_for(self, tenant_id: str) -> PoolEntry | None:
        stmt = (
            select(PoolEntry)
            .where(PoolEntry.assigned_tenant_id == tenant_id)
            .where(PoolEntry.status == PoolEntryStatus.RESERVED.value)
            .order_by(PoolEntry.id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def set_voice_id(self, entry_id: int, external_voice_id: str) -> None:
        await self.session.execute(
            update(PoolEntry)
            .where(PoolEntry.id == entry_id)
            .values(external_voice_id=external_voice_id, updated_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )

    async def unassign(self, entry_id: int, tenant_id: str) -> bool:
        """
        Undo a claim that could not be completed.

        Returns the entry straight to available since it never reached the tenant.
        """
        stmt = (
            update(PoolEntry)
            .where(PoolEntry.id == entry_id)
            .where(PoolEntry.assigned_tenant_id == tenant_id)
            .values(
                assigned_tenant_id=None,
                status=PoolEntryStatus.AVAILABLE.value,
                assigned_at=None,
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def return_entry(self, entry_id: int, tenant_id: str) -> bool:
        """
        Take an entry back from a tenant and start its recycle cooldown.

        Returns:
            bool: False if the tenant no longer held the entry
        """
        now = datetime.now(UTC)
        stmt = (
            update(PoolEntry)
            .where(PoolEntry.id == entry_id)
            .where(PoolEntry.assigned_tenant_id == tenant_id)
            .values(
                assigned_tenant_id=None,
                status=PoolEntryStatus.RELEASED.value,
                assigned_at=None,
                released_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def cancel_reservation(self, entry_id: int, tenant_id: str) -> bool:
        stmt = (
            update(PoolEntry)
            .where(PoolEntry.id == entry_id)
            .where(PoolEntry.assigned_tenant_id == tenant_id)
            .where(PoolEntry.status == PoolEntryStatus.RESERVED.value)
            .values(
                assigned_tenant_id=None,
                status=PoolEntryStatus.AVAILABLE.value,
                reserved_until=None,
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def list_expired_reservations(self, now: datetime) -> list[PoolEntry]:
        stmt = (
            select(PoolEntry)
            .where(PoolEntry.status == PoolEntryStatus.RESERVED.value)
            .where(PoolEntry.reserved_until < now)
            .order_by(PoolEntry.id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def recycle_released(self, cooldown: timedelta) -> int:
        """
        Make released entries available again once the cooldown has passed.

        Returns:
            int: Number of recycled entries
        """
        now = datetime.now(UTC)
        stmt = (
            update(PoolEntry)
            .where(PoolEntry.status == PoolEntryStatus.RELEASED.value)
            .where(PoolEntry.released_at < now - cooldown)
            .values(status=PoolEntryStatus.AVAILABLE.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def count_by_region_and_status(
        self, region: str | None = None
    ) -> list[tuple[str, str, int]]:
        stmt = select(PoolEntry.region, PoolEntry.status, func.count()).group_by(
            PoolEntry.region, PoolEntry.status
        )
        if region:
            stmt = stmt.where(PoolEntry.region == region)
        result = await self.session.execute(stmt)
        return [(row[0], row[1], row[2]) for row in result.all()]

    async def add_history(
        self,
        pool_entry_id: int,
        tenant_id: str,
        action: PoolAction,
        reason: str | None = None,
    ) -> None:
        self.session.add(
            PoolAssignmentHistory(
                pool_entry_id=pool_entry_id,
                tenant_id=tenant_id,
                action=action.value,
                reason=reason,
            )
        )
        await self.session.flush()
        logger.debug(
            "[NumberPoolRepository] Recorded history",
            pool_entry_id=pool_entry_id,
            tenant_id=tenant_id,
            action=action.value,
        )

    async def list_history(self, pool_entry_id: int) -> list[PoolAssignmentHistory]:
        stmt = (
            select(PoolAssignmentHistory)
            .where(PoolAssignmentHistory.pool_entry_id == pool_entry_id)
            .order_by(PoolAssignmentHistory.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
