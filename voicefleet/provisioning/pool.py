"""
Number pool allocator.

Assigns phone numbers from pre-purchased regional inventory instead of buying
them in real time. Every claim on a pool entry is a conditional update, so
concurrent callers can never hand the same entry to two tenants.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from voicefleet.config import ProvisioningSettings, get_provisioning_settings
from voicefleet.db.assistants.repository import AssistantRepository
from voicefleet.db.constants import PhoneSource, PoolAction, PoolEntryStatus
from voicefleet.db.number_pool.model import PoolEntry
from voicefleet.db.number_pool.repository import NumberPoolRepository
from voicefleet.db.phone_numbers.model import PhoneResource
from voicefleet.db.phone_numbers.repository import PhoneResourceRepository
from voicefleet.db.tenants.repository import TenantRepository
from voicefleet.provisioning.exceptions import PoolExhausted, ProvisioningError
from voicefleet.provisioning.schemas import PoolStats
from voicefleet.utils.logger import logger
from voicefleet.utils.phone import format_e164, last_digits
from voicefleet.voice_ai.base import VoiceAIError, VoiceAIProvider
from voicefleet.voice_ai.constants import CarrierName
from voicefleet.voice_ai.schemas import ImportPhoneNumberOptions

# Candidates fetched per claim round
CLAIM_BATCH_SIZE = 10


@dataclass
class PoolAssignment:
    pool_entry: PoolEntry
    phone_resource: PhoneResource

    @property
    def phone_resource_id(self) -> int:
        return self.phone_resource.id


class PoolAllocator:
    """Reserves, assigns and recycles numbers from the shared pool."""

    def __init__(
        self,
        session: AsyncSession,
        voice_ai: VoiceAIProvider,
        settings: ProvisioningSettings | None = None,
        credential_id: str | None = None,
    ):
        """
        Args:
            session: Database session; the allocator commits after each durable step
            voice_ai: Voice AI provider used to import pool numbers
            settings: Provisioning settings, defaults to the global instance
            credential_id: Voice AI credential for the trunk serving pool numbers
        """
        self.session = session
        self.voice_ai = voice_ai
        self.settings = settings or get_provisioning_settings()
        self.credential_id = credential_id
        self.pool_repository = NumberPoolRepository(session)
        self.phone_repository = PhoneResourceRepository(session)

    async def assign(
        self,
        tenant_id: str,
        preferred_entry_id: int | None = None,
        region: str | None = None,
        assistant_id: str | None = None,
    ) -> PoolAssignment:
        """
        Assign a pool number to a tenant.

        Tries the preferred entry first (e.g. one reserved at checkout), then
        any available entry in the region. The entry is imported into the
        voice AI platform on its first assignment only.

        Args:
            tenant_id: Tenant receiving the number
            preferred_entry_id: Entry to try first
            region: Pool region, defaults to the tenant's region
            assistant_id: Voice AI assistant to route the number to, defaults
                to the tenant's active assistant

        Returns:
            PoolAssignment: The claimed entry and the new phone resource

        Raises:
            PoolExhausted: If no entry is available in the region
            VoiceAIError: If importing or routing the number fails; the entry
                is returned to the pool
        """
        region = region or await self._tenant_region(tenant_id)
        if assistant_id is None:
            assistant = await AssistantRepository(self.session).get_active(tenant_id)
            assistant_id = assistant.external_voice_id if assistant else None

        entry_id = None
        if preferred_entry_id is not None:
            if await self.pool_repository.claim(preferred_entry_id, tenant_id):
                entry_id = preferred_entry_id
            else:
                logger.info(
                    "[NumberPool] Preferred entry unavailable, falling back to region",
                    tenant_id=tenant_id,
                    preferred_entry_id=preferred_entry_id,
                    region=region,
                )
        if entry_id is None:
            entry_id = await self._claim_any(tenant_id, region)
        await self.session.commit()

        entry = await self.pool_repository.get(entry_id)
        if entry is None:
            raise ProvisioningError(f"Claimed pool entry {entry_id} no longer exists")

        try:
            voice_id = await self._ensure_imported(entry, assistant_id)
            if assistant_id:
                await self.voice_ai.assign_assistant_to_number(voice_id, assistant_id)
        except VoiceAIError as e:
            logger.error(
                "[NumberPool] Failed to import pool number, returning it to the pool",
                tenant_id=tenant_id,
                pool_entry_id=entry.id,
                error=e.message,
            )
            await self.pool_repository.unassign(entry.id, tenant_id)
            await self.session.commit()
            raise

        active_count = await self.phone_repository.count_active(tenant_id)
        resource = await self.phone_repository.create(
            tenant_id=tenant_id,
            phone_number=entry.phone_number,
            external_carrier_id=entry.external_carrier_id,
            external_voice_id=voice_id,
            assigned_assistant_id=assistant_id,
            source=PhoneSource.POOL,
            pool_entry_id=entry.id,
            label=f"{self.settings.number_label_prefix} {active_count + 1}",
        )
        await self.pool_repository.add_history(
            entry.id, tenant_id, PoolAction.ASSIGNED, "Subscription confirmed"
        )
        await self.session.commit()

        logger.info(
            "[NumberPool] Assigned pool number",
            tenant_id=tenant_id,
            pool_entry_id=entry.id,
            phone_number=entry.phone_number,
        )
        return PoolAssignment(pool_entry=entry, phone_resource=resource)

    async def reserve(
        self,
        tenant_id: str,
        region: str | None = None,
        minutes: int | None = None,
    ) -> PoolEntry:
        """
        Hold a number for a tenant while checkout completes.

        Raises:
            PoolExhausted: If no entry is available in the region
        """
        region = region or await self._tenant_region(tenant_id)
        minutes = minutes if minutes is not None else self.settings.reservation_minutes
        until = datetime.now(UTC) + timedelta(minutes=minutes)

        while True:
            candidates = await self.pool_repository.list_available_ids(
                region, CLAIM_BATCH_SIZE
            )
            if not candidates:
                raise PoolExhausted(region)
            for entry_id in candidates:
                if await self.pool_repository.reserve(entry_id, tenant_id, until):
                    await self.pool_repository.add_history(
                        entry_id,
                        tenant_id,
                        PoolAction.RESERVED,
                        "Subscription checkout started",
                    )
                    await self.session.commit()
                    entry = await self.pool_repository.get(entry_id)
                    if entry is None:
                        raise ProvisioningError(
                            f"Reserved pool entry {entry_id} no longer exists"
                        )
                    logger.info(
                        "[NumberPool] Reserved pool number",
                        tenant_id=tenant_id,
                        pool_entry_id=entry_id,
                        reserved_until=until.isoformat(),
                    )
                    return entry

    async def cancel_reservation(self, tenant_id: str) -> bool:
        """Return a tenant's reserved number to the pool (checkout abandoned)."""
        entry = await self.pool_repository.find_reserved_for(tenant_id)
        if entry is None:
            return False

        if not await self.pool_repository.cancel_reservation(entry.id, tenant_id):
            return False
        await self.pool_repository.add_history(
            entry.id, tenant_id, PoolAction.CANCELLED, "Checkout abandoned"
        )
        await self.session.commit()

        logger.info(
            "[NumberPool] Cancelled reservation",
            tenant_id=tenant_id,
            pool_entry_id=entry.id,
        )
        return True

    async def return_to_pool(
        self, entry_id: int, tenant_id: str, reason: str = "Number released"
    ) -> bool:
        """
        Take an assigned entry back from a tenant.

        The entry goes to released and becomes available again after the
        recycle cooldown. Does not commit; the caller owns the transaction.

        Returns:
            bool: False if the tenant no longer held the entry
        """
        returned = await self.pool_repository.return_entry(entry_id, tenant_id)
        if returned:
            await self.pool_repository.add_history(
                entry_id, tenant_id, PoolAction.RELEASED, reason
            )
        return returned

    async def cleanup_expired_reservations(self, now: datetime | None = None) -> int:
        """
        Return reservations past their hold time to the pool.

        Returns:
            int: Number of reservations cleaned up
        """
        now = now or datetime.now(UTC)
        expired = await self.pool_repository.list_expired_reservations(now)

        cleaned = 0
        for entry in expired:
            tenant_id = entry.assigned_tenant_id
            if tenant_id is None:
                continue
            if await self.pool_repository.cancel_reservation(entry.id, tenant_id):
                await self.pool_repository.add_history(
                    entry.id, tenant_id, PoolAction.CANCELLED, "Reservation expired"
                )
                cleaned += 1
        await self.session.commit()

        if cleaned:
            logger.info("[NumberPool] Cleaned up expired reservations", count=cleaned)
        return cleaned

    async def recycle_released(self, cooldown_hours: int | None = None) -> int:
        """Make released numbers available again once their cooldown has passed."""
        hours = (
            cooldown_hours
            if cooldown_hours is not None
            else self.settings.recycle_cooldown_hours
        )
        recycled = await self.pool_repository.recycle_released(timedelta(hours=hours))
        await self.session.commit()

        if recycled:
            logger.info("[NumberPool] Recycled numbers back to pool", count=recycled)
        return recycled

    async def get_pool_stats(self, region: str | None = None) -> PoolStats:
        stats = PoolStats()
        for entry_region, status, count in (
            await self.pool_repository.count_by_region_and_status(region)
        ):
            stats.total += count
            if status == PoolEntryStatus.AVAILABLE.value:
                stats.available += count
            elif status == PoolEntryStatus.RESERVED.value:
                stats.reserved += count
            elif status == PoolEntryStatus.ASSIGNED.value:
                stats.assigned += count
            elif status == PoolEntryStatus.RELEASED.value:
                stats.released += count

            by_region = stats.by_region.setdefault(
                entry_region, {"total": 0, "available": 0}
            )
            by_region["total"] += count
            if status == PoolEntryStatus.AVAILABLE.value:
                by_region["available"] += count
        return stats

    async def add_number(
        self,
        phone_number: str,
        region: str,
        carrier: str = CarrierName.BYO_SIP_TRUNK.value,
        external_carrier_id: str | None = None,
        external_voice_id: str | None = None,
        notes: str | None = None,
    ) -> PoolEntry:
        """Add a pre-purchased number to the pool."""
        entry = await self.pool_repository.add(
            phone_number=format_e164(phone_number, region),
            region=region,
            carrier=carrier,
            external_carrier_id=external_carrier_id,
            external_voice_id=external_voice_id,
            notes=notes,
        )
        await self.session.commit()

        logger.info(
            "[NumberPool] Added number to pool",
            pool_entry_id=entry.id,
            region=region,
        )
        return entry

    async def _claim_any(self, tenant_id: str, region: str) -> int:
        while True:
            candidates = await self.pool_repository.list_available_ids(
                region, CLAIM_BATCH_SIZE
            )
            if not candidates:
                logger.warning(
                    "[NumberPool] Pool exhausted", tenant_id=tenant_id, region=region
                )
                raise PoolExhausted(region)
            for entry_id in candidates:
                if await self.pool_repository.claim(entry_id, tenant_id):
                    return entry_id
            logger.debug(
                "[NumberPool] Lost claim race, retrying", tenant_id=tenant_id
            )

    async def _ensure_imported(
        self, entry: PoolEntry, assistant_id: str | None
    ) -> str:
        if entry.external_voice_id:
            return entry.external_voice_id

        imported = await self.voice_ai.import_phone_number(
            entry.phone_number,
            entry.carrier,
            ImportPhoneNumberOptions(
                name=f"{entry.region}-{last_digits(entry.phone_number)}",
                assistant_id=assistant_id,
                credential_id=self.credential_id,
            ),
        )
        # Persist right away so later re-assignments skip the import
        await self.pool_repository.set_voice_id(entry.id, imported.id)
        await self.session.commit()
        entry.external_voice_id = imported.id
        return imported.id

    async def _tenant_region(self, tenant_id: str) -> str:
        tenant = await TenantRepository(self.session).get(tenant_id)
        if tenant is not None:
            return tenant.region
        return self.settings.pool_regions[0]
