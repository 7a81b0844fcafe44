"""
Provisioning service.

Entry point for upstream callers (subscription webhooks, admin scripts and the
background worker). Builds the provisioning components for each call from
injected providers, holds the tenant's lock around every operation, and feeds
failed provisioning into the retry queue.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from voicefleet.config import ProvisioningSettings, get_provisioning_settings
from voicefleet.db.database import get_async_session_local
from voicefleet.db.phone_numbers.repository import PhoneResourceRepository
from voicefleet.db.provisioning_queue.model import RetryQueueItem
from voicefleet.db.tenants.repository import TenantRepository
from voicefleet.provisioning.entitlements import get_quota
from voicefleet.provisioning.exceptions import (
    InvalidExternalIdError,
    NoNumbersAvailableError,
)
from voicefleet.provisioning.locks import TenantLockRegistry
from voicefleet.provisioning.orchestrator import ProvisioningOrchestrator
from voicefleet.provisioning.pool import PoolAllocator
from voicefleet.provisioning.reconciler import PlanChangeReconciler
from voicefleet.provisioning.release import ReleaseWorkflow
from voicefleet.provisioning.retry_queue import RetryQueue, orphans_from_result
from voicefleet.provisioning.schemas import (
    FailureStage,
    NumberFailure,
    ProvisionResult,
    ReconcileAction,
    ReconcileResult,
    TeardownResult,
    TenantInfo,
)
from voicefleet.provisioning.sources import (
    CarrierNumberSource,
    NumberSource,
    PoolNumberSource,
)
from voicefleet.provisioning.teardown import TenantTeardown
from voicefleet.telephony.base import TelephonyError, TelephonyProvider
from voicefleet.telephony.config import get_telephony_settings
from voicefleet.telephony.providers.factory import create_telephony_provider
from voicefleet.telephony.schemas import OwnedNumber
from voicefleet.utils.logger import logger
from voicefleet.voice_ai.base import VoiceAIError, VoiceAIProvider
from voicefleet.voice_ai.config import get_vapi_settings
from voicefleet.voice_ai.providers.factory import create_voice_ai_provider

# Full-pass failures worth retrying later; missing credentials and an empty
# pool need an operator first
RETRYABLE_ERRORS = (
    NoNumbersAvailableError,
    InvalidExternalIdError,
    TelephonyError,
    VoiceAIError,
)


class _Components:
    """Provisioning components bound to one session."""

    def __init__(
        self,
        service: "ProvisioningService",
        session: AsyncSession,
        region: str | None,
    ):
        self.carrier_source = CarrierNumberSource(
            session,
            service.telephony,
            service.voice_ai,
            credential_id=service.carrier_credential_id,
            routing_app_id=service.routing_app_id,
            settings=service.settings,
        )
        self.pool_allocator = PoolAllocator(
            session,
            service.voice_ai,
            settings=service.settings,
            credential_id=service.pool_credential_id,
        )
        self.pool_source = PoolNumberSource(self.pool_allocator)

        number_source: NumberSource = self.carrier_source
        if region and region in service.settings.pool_regions:
            number_source = self.pool_source

        self.orchestrator = ProvisioningOrchestrator(
            session, service.voice_ai, number_source
        )
        self.release_workflow = ReleaseWorkflow(
            session, [self.carrier_source, self.pool_source]
        )
        self.reconciler = PlanChangeReconciler(
            session, self.orchestrator, self.release_workflow
        )


class ProvisioningService:
    """Serialized, retry-aware access to provisioning for upstream callers."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        telephony: TelephonyProvider,
        voice_ai: VoiceAIProvider,
        settings: ProvisioningSettings | None = None,
        carrier_credential_id: str | None = None,
        pool_credential_id: str | None = None,
        routing_app_id: str | None = None,
        locks: TenantLockRegistry | None = None,
    ):
        """
        Initialize the service.

        Args:
            session_factory: Factory for per-operation database sessions
            telephony: Carrier used for on-demand purchases
            voice_ai: Voice AI platform for assistants and number imports
            settings: Provisioning settings, defaults to the global instance
            carrier_credential_id: Voice AI credential for the carrier account
            pool_credential_id: Voice AI credential for the pool SIP trunk
            routing_app_id: Carrier voice application for purchased numbers
            locks: Tenant lock registry; share one per process
        """
        self.session_factory = session_factory
        self.telephony = telephony
        self.voice_ai = voice_ai
        self.settings = settings or get_provisioning_settings()
        self.carrier_credential_id = carrier_credential_id
        self.pool_credential_id = pool_credential_id
        self.routing_app_id = routing_app_id
        self.locks = locks or TenantLockRegistry()
        self.retry_queue = RetryQueue(
            session_factory, processor=self.process_retry_item, settings=self.settings
        )

    async def provision(
        self,
        tenant_id: str,
        plan_id: str | None,
        tenant_info: TenantInfo | None = None,
        count: int | None = None,
    ) -> ProvisionResult:
        """
        Provision numbers for a tenant (first purchase).

        Partial results are queued for retry. Retryable full-pass failures are
        queued and re-raised.
        """
        async with self.locks.hold(tenant_id):
            try:
                result = await self._provision(tenant_id, plan_id, tenant_info, count)
            except RETRYABLE_ERRORS as e:
                requested = (
                    count if count is not None else get_quota(plan_id).number_count
                )
                await self.retry_queue.enqueue_failure(
                    tenant_id, plan_id, requested, _error_message(e)
                )
                raise

            await self._enqueue_shortfall(tenant_id, plan_id, result)
            return result

    async def reconcile(
        self,
        tenant_id: str,
        old_plan_id: str | None,
        new_plan_id: str | None,
        tenant_info: TenantInfo | None = None,
    ) -> ReconcileResult:
        """Reconcile a tenant's numbers after a plan change."""
        async with self.locks.hold(tenant_id):
            try:
                async with self.session_factory() as session:
                    components = await self._components(session, tenant_id)
                    result = await components.reconciler.reconcile(
                        tenant_id, old_plan_id, new_plan_id, tenant_info
                    )
            except RETRYABLE_ERRORS as e:
                shortfall = await self._shortfall(tenant_id, new_plan_id)
                if shortfall > 0:
                    await self.retry_queue.enqueue_failure(
                        tenant_id, new_plan_id, shortfall, _error_message(e)
                    )
                raise

            if result.action == ReconcileAction.GROW and result.provision_result:
                await self._enqueue_shortfall(
                    tenant_id, new_plan_id, result.provision_result
                )
            return result

    async def cancel_tenant(self, tenant_id: str) -> TeardownResult:
        """Release every number and delete the assistant of a cancelled tenant."""
        async with self.locks.hold(tenant_id):
            async with self.session_factory() as session:
                components = await self._components(session, tenant_id)
                teardown = TenantTeardown(
                    session, self.voice_ai, components.release_workflow
                )
                return await teardown.cancel_tenant(tenant_id)

    async def process_retry_item(
        self, item: RetryQueueItem, adopt: list[OwnedNumber]
    ) -> ProvisionResult:
        """
        Re-run a queued provisioning pass under the tenant's lock.

        The count is capped at what the tenant's current plan is still
        missing, since a plan change may have moved the quota since the item
        was queued. Adopted numbers beyond that count are released on the
        carrier; any that fail to release come back as failures so the queue
        keeps them.
        """
        async with self.locks.hold(item.tenant_id):
            async with self.session_factory() as session:
                tenant = await TenantRepository(session).get(item.tenant_id)
            plan_id = tenant.plan_id if tenant else item.plan_id
            uses_pool = bool(tenant and tenant.region in self.settings.pool_regions)

            shortfall = await self._shortfall(item.tenant_id, plan_id)
            count = min(item.requested_count, shortfall)
            if count < item.requested_count:
                logger.info(
                    "[Provisioning] Retry capped at remaining quota",
                    tenant_id=item.tenant_id,
                    plan_id=plan_id,
                    queued=item.requested_count,
                    count=count,
                )

            # Pool tenants never take carrier numbers
            keep = [] if uses_pool else adopt[:count]
            if count == 0:
                result = ProvisionResult(requested=0)
            else:
                result = await self._provision(
                    item.tenant_id, plan_id, count=count, adopt=keep
                )

            result.failures.extend(
                await self._release_surplus(item.tenant_id, adopt[len(keep) :])
            )
            return result

    async def sweep_retries(self) -> int:
        return await self.retry_queue.sweep()

    async def _provision(
        self,
        tenant_id: str,
        plan_id: str | None,
        tenant_info: TenantInfo | None = None,
        count: int | None = None,
        adopt: list[OwnedNumber] | None = None,
    ) -> ProvisionResult:
        async with self.session_factory() as session:
            components = await self._components(session, tenant_id)
            return await components.orchestrator.provision(
                tenant_id, plan_id, tenant_info, count=count, adopt=adopt
            )

    async def _shortfall(self, tenant_id: str, plan_id: str | None) -> int:
        async with self.session_factory() as session:
            active = await PhoneResourceRepository(session).count_active(tenant_id)
        return max(0, get_quota(plan_id).number_count - active)

    async def _release_surplus(
        self, tenant_id: str, numbers: list[OwnedNumber]
    ) -> list[NumberFailure]:
        failures = []
        for number in numbers:
            try:
                await self.telephony.release_number(number.carrier_id)
            except TelephonyError as e:
                if e.is_not_found:
                    continue
                logger.error(
                    "[Provisioning] Failed to release surplus orphaned number",
                    tenant_id=tenant_id,
                    phone_number=number.phone_number,
                    carrier_id=number.carrier_id,
                    error=e.message,
                )
                failures.append(
                    NumberFailure(
                        phone_number=number.phone_number,
                        carrier_id=number.carrier_id,
                        stage=FailureStage.RELEASE,
                        error=e.message,
                    )
                )
                continue
            logger.info(
                "[Provisioning] Released surplus orphaned number",
                tenant_id=tenant_id,
                phone_number=number.phone_number,
                carrier_id=number.carrier_id,
            )
        return failures

    async def _components(self, session: AsyncSession, tenant_id: str) -> _Components:
        tenant = await TenantRepository(session).get(tenant_id)
        return _Components(self, session, tenant.region if tenant else None)

    async def _enqueue_shortfall(
        self, tenant_id: str, plan_id: str | None, result: ProvisionResult
    ) -> None:
        if result.provisioned >= result.requested:
            return
        errors = "; ".join(
            f"{failure.phone_number or 'pool number'} "
            f"({failure.stage.value}): {failure.error}"
            for failure in result.failures
        )
        await self.retry_queue.enqueue_failure(
            tenant_id,
            plan_id,
            result.requested - result.provisioned,
            errors or "Fewer numbers provisioned than requested",
            orphaned_numbers=orphans_from_result(result),
        )


def _error_message(error: Exception) -> str:
    return getattr(error, "message", None) or str(error)


def create_provisioning_service(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> ProvisioningService:
    """
    Composition root: build a ProvisioningService from configuration.

    Providers are chosen by TELEPHONY_PROVIDER and VOICE_AI_PROVIDER. Vapi
    credential ids are only read when Vapi is the voice AI provider.
    """
    telephony = create_telephony_provider()
    voice_ai = create_voice_ai_provider()

    carrier_credential_id = None
    pool_credential_id = None
    if voice_ai.requires_carrier_credential:
        vapi_settings = get_vapi_settings()
        carrier_credential_id = vapi_settings.carrier_credential_id
        pool_credential_id = vapi_settings.pool_credential_id

    logger.info(
        "[Provisioning] Service configured",
        telephony=type(telephony).__name__,
        voice_ai=type(voice_ai).__name__,
    )
    return ProvisioningService(
        session_factory=session_factory or get_async_session_local(),
        telephony=telephony,
        voice_ai=voice_ai,
        carrier_credential_id=carrier_credential_id,
        pool_credential_id=pool_credential_id,
        routing_app_id=get_telephony_settings().routing_app_id,
    )
