"""
Release workflow.

Tears down one phone number across both collaborators. The order matters:
the voice AI step runs first so the number stops routing calls, then the
carrier step stops billing, then the local row is marked released.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from voicefleet.db.phone_numbers.model import PhoneResource
from voicefleet.db.phone_numbers.repository import PhoneResourceRepository
from voicefleet.provisioning.exceptions import CarrierReleaseError, ProvisioningError
from voicefleet.provisioning.sources import NumberSource
from voicefleet.telephony.base import TelephonyError
from voicefleet.utils.logger import logger
from voicefleet.voice_ai.base import VoiceAIError


class ReleaseWorkflow:
    """Releases phone resources regardless of where they came from."""

    def __init__(self, session: AsyncSession, sources: list[NumberSource]):
        """
        Args:
            session: Database session; committed once the row is released
            sources: Number sources, one per PhoneSource the tenant may hold
        """
        self.session = session
        self.sources = {source.source.value: source for source in sources}
        self.phone_repository = PhoneResourceRepository(session)

    async def release(self, resource: PhoneResource) -> None:
        """
        Release a phone resource.

        Releasing a row that is already released does nothing. "Not found"
        from either collaborator counts as success.

        Args:
            resource: The phone resource to release

        Raises:
            VoiceAIError: If the voice AI step fails; the row stays active
            CarrierReleaseError: If the carrier step fails; the row is still
                marked released
        """
        if not resource.is_active:
            logger.debug(
                "[Release] Phone resource already released",
                phone_resource_id=resource.id,
            )
            return

        source = self.sources.get(resource.source)
        if source is None:
            raise ProvisioningError(
                f"No number source configured for {resource.source} numbers"
            )

        try:
            await source.detach_voice(resource)
        except VoiceAIError as e:
            if not e.is_not_found:
                logger.error(
                    "[Release] Voice AI step failed, number left active",
                    phone_resource_id=resource.id,
                    error=e.message,
                )
                raise
            logger.info(
                "[Release] Voice AI number already gone",
                phone_resource_id=resource.id,
            )

        carrier_error: TelephonyError | None = None
        try:
            await source.relinquish(resource)
        except TelephonyError as e:
            if not e.is_not_found:
                carrier_error = e

        await self.phone_repository.mark_released(resource)
        await self.session.commit()

        if carrier_error is not None:
            logger.error(
                "[Release] Carrier release failed, number is dangling at the carrier",
                phone_resource_id=resource.id,
                carrier_id=resource.external_carrier_id,
                error=carrier_error.message,
            )
            raise CarrierReleaseError(
                f"Carrier release failed: {carrier_error.message}",
                carrier_id=resource.external_carrier_id,
            ) from carrier_error

        logger.info(
            "[Release] Released phone number",
            tenant_id=resource.tenant_id,
            phone_resource_id=resource.id,
            source=resource.source,
        )
