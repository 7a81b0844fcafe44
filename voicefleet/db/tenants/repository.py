"""
Repository for tenant records.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voicefleet.db.constants import SubscriptionStatus
from voicefleet.db.tenants.model import Tenant


class TenantRepository:
    """Repository for reading and updating tenants."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, tenant_id: str) -> Tenant | None:
        result = await self.session.execute(select(Tenant).where(Tenant.id == tenant_id))
        return result.scalar_one_or_none()

    async def create(
        self,
        tenant_id: str,
        plan_id: str | None = None,
        region: str = "US",
    ) -> Tenant:
        tenant = Tenant(id=tenant_id, plan_id=plan_id, region=region)
        self.session.add(tenant)
        await self.session.flush()
        return tenant

    async def set_plan(self, tenant_id: str, plan_id: str) -> None:
        tenant = await self.get(tenant_id)
        if tenant is not None:
            tenant.plan_id = plan_id
            await self.session.flush()

    async def set_subscription_status(
        self, tenant_id: str, status: SubscriptionStatus
    ) -> None:
        tenant = await self.get(tenant_id)
        if tenant is not None:
            tenant.subscription_status = status.value
            await self.session.flush()
