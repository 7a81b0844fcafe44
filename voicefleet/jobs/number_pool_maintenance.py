"""
Number pool maintenance job.

Runs periodically to:
1. Return expired checkout reservations to the pool
2. Recycle released numbers once their cooldown has passed
3. Warn when a pool is running low
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from voicefleet.config import ProvisioningSettings, get_provisioning_settings
from voicefleet.jobs.base import PeriodicJob
from voicefleet.provisioning.pool import PoolAllocator
from voicefleet.provisioning.schemas import PoolStats
from voicefleet.utils.logger import logger
from voicefleet.voice_ai.base import VoiceAIProvider


class NumberPoolMaintenanceJob(PeriodicJob):
    name = "NumberPoolMaintenance"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        voice_ai: VoiceAIProvider,
        settings: ProvisioningSettings | None = None,
    ):
        self.settings = settings or get_provisioning_settings()
        super().__init__(self.settings.pool_maintenance_interval_seconds)
        self.session_factory = session_factory
        self.voice_ai = voice_ai
        self.last_stats: PoolStats | None = None

    async def run_once(self) -> None:
        async with self.session_factory() as session:
            allocator = PoolAllocator(session, self.voice_ai, settings=self.settings)

            expired = await allocator.cleanup_expired_reservations()
            recycled = await allocator.recycle_released()
            stats = await allocator.get_pool_stats()

        self.last_stats = stats
        logger.info(
            f"[{self.name}] Completed",
            expired_reservations_cleared=expired,
            numbers_recycled=recycled,
            total=stats.total,
            available=stats.available,
            assigned=stats.assigned,
            reserved=stats.reserved,
        )

        for region in self.settings.pool_regions:
            available = stats.by_region.get(region, {}).get("available", 0)
            if available < self.settings.pool_low_stock_threshold:
                logger.warning(
                    f"[{self.name}] Low pool availability",
                    region=region,
                    available=available,
                    threshold=self.settings.pool_low_stock_threshold,
                )
