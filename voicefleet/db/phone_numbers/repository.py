"""
Repository for tenant phone number resources.
"""

from datetime import UTC, datetime

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from voicefleet.db.constants import PhoneResourceStatus, PhoneSource
from voicefleet.db.phone_numbers.model import PhoneResource
from voicefleet.utils.logger import logger


class PhoneResourceRepository:
    """Repository for managing tenant phone number rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        tenant_id: str,
        phone_number: str,
        external_carrier_id: str | None,
        external_voice_id: str | None,
        assigned_assistant_id: str | None,
        source: PhoneSource = PhoneSource.CARRIER,
        pool_entry_id: int | None = None,
        label: str | None = None,
    ) -> PhoneResource:
        """
        Persist an active phone resource.

        Returns:
            PhoneResource: The created row with its id populated
        """
        resource = PhoneResource(
            tenant_id=tenant_id,
            phone_number=phone_number,
            external_carrier_id=external_carrier_id,
            external_voice_id=external_voice_id,
            assigned_assistant_id=assigned_assistant_id,
            source=source.value,
            pool_entry_id=pool_entry_id,
            label=label,
            status=PhoneResourceStatus.ACTIVE.value,
        )
        self.session.add(resource)
        await self.session.flush()
        await self.session.refresh(resource)

        logger.info(
            "[PhoneResourceRepository] Created phone resource",
            id=resource.id,
            tenant_id=tenant_id,
            source=source.value,
        )
        return resource

    async def get(self, resource_id: int) -> PhoneResource | None:
        result = await self.session.execute(
            select(PhoneResource).where(PhoneResource.id == resource_id)
        )
        return result.scalar_one_or_none()

    async def list_active(self, tenant_id: str) -> list[PhoneResource]:
        """List a tenant's active numbers, oldest first."""
        stmt = (
            select(PhoneResource)
            .where(PhoneResource.tenant_id == tenant_id)
            .where(PhoneResource.status == PhoneResourceStatus.ACTIVE.value)
            .order_by(PhoneResource.created_at, PhoneResource.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_active(self, tenant_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(PhoneResource)
            .where(PhoneResource.tenant_id == tenant_id)
            .where(PhoneResource.status == PhoneResourceStatus.ACTIVE.value)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def list_newest_active(self, tenant_id: str, limit: int) -> list[PhoneResource]:
        """
        Get the most recently created active numbers.

        Ties on created_at are broken by id so the order is deterministic.

        Args:
            tenant_id: Tenant id
            limit: Maximum rows to return

        Returns:
            list[PhoneResource]: Newest first
        """
        stmt = (
            select(PhoneResource)
            .where(PhoneResource.tenant_id == tenant_id)
            .where(PhoneResource.status == PhoneResourceStatus.ACTIVE.value)
            .order_by(desc(PhoneResource.created_at), desc(PhoneResource.id))
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_released(self, resource: PhoneResource) -> None:
        resource.status = PhoneResourceStatus.RELEASED.value
        resource.released_at = datetime.now(UTC)
        await self.session.flush()
