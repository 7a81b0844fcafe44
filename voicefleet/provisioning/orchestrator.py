"""
Provisioning orchestrator.

Runs one provisioning pass for a tenant:
1. Pre-flight checks on the number source
2. Ensure the tenant has a voice assistant
3. Acquire numbers, route them to the assistant and persist them

A failure on one number does not abort the pass. Numbers that were bought
but could not be imported are reported with their carrier id and are not
released; a later pass can adopt them instead of buying new ones.
"""

import textwrap

from sqlalchemy.ext.asyncio import AsyncSession

from voicefleet.db.assistants.model import AssistantResource
from voicefleet.db.assistants.repository import AssistantRepository
from voicefleet.db.tenants.repository import TenantRepository
from voicefleet.provisioning.entitlements import get_plan_features, get_quota
from voicefleet.provisioning.exceptions import InvalidExternalIdError
from voicefleet.provisioning.schemas import PlanFeatures, ProvisionResult, TenantInfo
from voicefleet.provisioning.sources import NumberSource
from voicefleet.telephony.schemas import OwnedNumber
from voicefleet.utils.logger import logger
from voicefleet.voice_ai.base import VoiceAIProvider
from voicefleet.voice_ai.constants import is_valid_external_id
from voicefleet.voice_ai.schemas import AssistantConfig


def build_assistant_config(
    tenant_id: str, tenant_info: TenantInfo, features: PlanFeatures
) -> AssistantConfig:
    business = tenant_info.business_name or "our office"
    system_prompt = textwrap.dedent(f"""
        You are {tenant_info.greeting_name}, the receptionist for {business}.
        {tenant_info.business_description}

        Answer callers politely, take their name and reason for calling,
        and keep the conversation brief.
    """).strip()

    return AssistantConfig(
        name=f"{tenant_info.business_name or 'Assistant'}-{tenant_id[:8]}",
        first_message=(
            f"Hi, thanks for calling {business}. "
            f"This is {tenant_info.greeting_name}, how can I help?"
        ),
        system_prompt=system_prompt,
        max_duration_seconds=features.max_minutes_per_call * 60,
    )


class ProvisioningOrchestrator:
    """Acquires phone numbers for a tenant and wires them to its assistant."""

    def __init__(
        self,
        session: AsyncSession,
        voice_ai: VoiceAIProvider,
        number_source: NumberSource,
    ):
        """
        Initialize the orchestrator.

        Args:
            session: Database session; committed after each durable step
            voice_ai: Voice AI provider for assistant management
            number_source: Where numbers come from (carrier or pool)
        """
        self.session = session
        self.voice_ai = voice_ai
        self.number_source = number_source
        self.assistant_repository = AssistantRepository(session)
        self.tenant_repository = TenantRepository(session)

    async def provision(
        self,
        tenant_id: str,
        plan_id: str | None,
        tenant_info: TenantInfo | None = None,
        count: int | None = None,
        adopt: list[OwnedNumber] | None = None,
    ) -> ProvisionResult:
        """
        Provision phone numbers for a tenant.

        Does not look at the tenant's existing numbers: callers decide how
        many are needed and pass count (defaults to the plan's quota).

        Args:
            tenant_id: Tenant to provision for
            plan_id: Plan the tenant is on
            tenant_info: Business details for a new assistant
            count: Numbers to provision, defaults to the plan's number count
            adopt: Already purchased numbers to import before buying new ones

        Returns:
            ProvisionResult: Requested and provisioned counts plus per-number failures

        Raises:
            MissingCredentialsError: If pre-flight checks fail (nothing purchased)
            NoNumbersAvailableError: If the carrier has no candidates
            InvalidExternalIdError: If the voice AI platform returns a malformed id
            PoolExhausted: If a pool tenant's region has no inventory left
            VoiceAIError: If the assistant cannot be created
            TelephonyError: If the carrier search or purchase fails
        """
        await self.number_source.preflight()

        assistant = await self.ensure_assistant(tenant_id, plan_id, tenant_info)

        required = count if count is not None else get_quota(plan_id).number_count
        if required <= 0:
            return ProvisionResult(
                requested=0, assistant_id=assistant.external_voice_id
            )

        tenant = await self.tenant_repository.get(tenant_id)
        region = tenant.region if tenant else None

        logger.info(
            "[Provisioning] Provisioning phone numbers",
            tenant_id=tenant_id,
            plan_id=plan_id,
            count=required,
            source=self.number_source.source.value,
        )
        result = await self.number_source.acquire(
            tenant_id,
            assistant.external_voice_id,
            required,
            region=region,
            adopt=adopt,
        )
        result.assistant_id = assistant.external_voice_id

        logger.info(
            "[Provisioning] Provisioning pass finished",
            tenant_id=tenant_id,
            requested=result.requested,
            provisioned=result.provisioned,
            failures=len(result.failures),
        )
        return result

    async def ensure_assistant(
        self,
        tenant_id: str,
        plan_id: str | None,
        tenant_info: TenantInfo | None = None,
    ) -> AssistantResource:
        """
        Get the tenant's assistant, creating it if there is none.

        An existing assistant whose stored id is not a well-formed voice AI id
        is retired and replaced.

        Raises:
            InvalidExternalIdError: If the newly created assistant id is malformed
            VoiceAIError: If creation fails
        """
        existing = await self.assistant_repository.get_active(tenant_id)
        if existing is not None:
            if is_valid_external_id(existing.external_voice_id):
                return existing
            logger.warning(
                "[Provisioning] Stored assistant id is malformed, recreating",
                tenant_id=tenant_id,
                external_voice_id=existing.external_voice_id,
            )
            await self.assistant_repository.mark_deleted(existing)
            await self.session.commit()

        features = get_plan_features(plan_id)
        config = build_assistant_config(tenant_id, tenant_info or TenantInfo(), features)

        logger.info("[Provisioning] Creating assistant", tenant_id=tenant_id)
        created = await self.voice_ai.create_assistant(config)
        if not is_valid_external_id(created.id):
            raise InvalidExternalIdError(
                f"Voice AI returned a malformed assistant id: {created.id!r}"
            )

        assistant = await self.assistant_repository.create(
            tenant_id=tenant_id,
            external_voice_id=created.id,
            voice_cloning_enabled=features.voice_cloning,
            custom_knowledge_base=features.custom_knowledge_base,
            max_minutes_per_call=features.max_minutes_per_call,
        )
        await self.session.commit()
        return assistant
