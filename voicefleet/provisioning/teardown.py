"""
Full teardown of a cancelled tenant.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from voicefleet.db.assistants.repository import AssistantRepository
from voicefleet.db.constants import SubscriptionStatus
from voicefleet.db.phone_numbers.repository import PhoneResourceRepository
from voicefleet.db.tenants.repository import TenantRepository
from voicefleet.provisioning.exceptions import CarrierReleaseError
from voicefleet.provisioning.release import ReleaseWorkflow
from voicefleet.provisioning.schemas import ReleaseFailure, TeardownResult
from voicefleet.utils.logger import logger
from voicefleet.voice_ai.base import VoiceAIError, VoiceAIProvider
from voicefleet.voice_ai.constants import is_valid_external_id


class TenantTeardown:
    """Releases every number a tenant holds and deletes its assistant."""

    def __init__(
        self,
        session: AsyncSession,
        voice_ai: VoiceAIProvider,
        release_workflow: ReleaseWorkflow,
    ):
        self.session = session
        self.voice_ai = voice_ai
        self.release_workflow = release_workflow
        self.phone_repository = PhoneResourceRepository(session)
        self.assistant_repository = AssistantRepository(session)
        self.tenant_repository = TenantRepository(session)

    async def cancel_tenant(self, tenant_id: str) -> TeardownResult:
        """
        Tear down everything provisioned for a tenant.

        Number releases continue past individual failures, which are reported
        in the result. Safe to call again after a partial teardown.

        Raises:
            VoiceAIError: If deleting the assistant fails with anything but "not found"
        """
        result = TeardownResult()

        for resource in await self.phone_repository.list_active(tenant_id):
            try:
                await self.release_workflow.release(resource)
                result.numbers_released += 1
            except CarrierReleaseError as e:
                result.numbers_released += 1
                result.failures.append(
                    ReleaseFailure(
                        phone_resource_id=resource.id,
                        phone_number=resource.phone_number,
                        error=e.message,
                    )
                )
            except VoiceAIError as e:
                result.failures.append(
                    ReleaseFailure(
                        phone_resource_id=resource.id,
                        phone_number=resource.phone_number,
                        error=e.message,
                    )
                )

        assistant = await self.assistant_repository.get_active(tenant_id)
        if assistant is not None:
            if is_valid_external_id(assistant.external_voice_id):
                try:
                    await self.voice_ai.delete_assistant(assistant.external_voice_id)
                except VoiceAIError as e:
                    if not e.is_not_found:
                        raise
                    logger.info(
                        "[Teardown] Assistant already deleted",
                        tenant_id=tenant_id,
                    )
            await self.assistant_repository.mark_deleted(assistant)
            result.assistant_deleted = True

        await self.tenant_repository.set_subscription_status(
            tenant_id, SubscriptionStatus.CANCELED
        )
        await self.session.commit()

        logger.info(
            "[Teardown] Tenant torn down",
            tenant_id=tenant_id,
            numbers_released=result.numbers_released,
            failures=len(result.failures),
        )
        return result
