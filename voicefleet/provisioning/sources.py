"""
Number sources: the two ways a tenant gets a phone number.

CarrierNumberSource buys numbers from the telephony carrier in real time.
PoolNumberSource hands out numbers from pre-purchased regional inventory.
Both expose the same interface so the orchestrator, the reconciler and the
release workflow do not care which one backs a tenant.
"""

from abc import ABC, abstractmethod

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from voicefleet.config import ProvisioningSettings, get_provisioning_settings
from voicefleet.db.constants import PhoneSource
from voicefleet.db.phone_numbers.model import PhoneResource
from voicefleet.db.phone_numbers.repository import PhoneResourceRepository
from voicefleet.provisioning.exceptions import (
    MissingCredentialsError,
    NoNumbersAvailableError,
)
from voicefleet.provisioning.pool import PoolAllocator
from voicefleet.provisioning.schemas import (
    FailureStage,
    NumberFailure,
    ProvisionedNumber,
    ProvisionResult,
)
from voicefleet.telephony.base import TelephonyError, TelephonyProvider
from voicefleet.telephony.schemas import OwnedNumber
from voicefleet.utils.logger import logger
from voicefleet.voice_ai.base import VoiceAIError, VoiceAIProvider
from voicefleet.voice_ai.schemas import ImportPhoneNumberOptions


class NumberSource(ABC):
    """The "acquire a number" capability."""

    source: PhoneSource

    @abstractmethod
    async def preflight(self) -> None:
        """
        Check that everything needed to complete acquisition is configured.

        Raises:
            MissingCredentialsError: If acquisition would fail part-way
        """
        pass

    @abstractmethod
    async def acquire(
        self,
        tenant_id: str,
        assistant_id: str | None,
        count: int,
        region: str | None = None,
        adopt: list[OwnedNumber] | None = None,
    ) -> ProvisionResult:
        """
        Acquire numbers, route them to the assistant and persist them.

        A failure on one number does not stop the others; it is reported in
        the result's failures.

        Args:
            tenant_id: Tenant receiving the numbers
            assistant_id: Voice AI assistant id to route calls to
            count: Numbers to acquire, including adopted ones
            region: ISO country code
            adopt: Numbers already owned on the carrier account that still
                need importing

        Returns:
            ProvisionResult: Provisioned numbers and per-number failures
        """
        pass

    @abstractmethod
    async def detach_voice(self, resource: PhoneResource) -> None:
        """Stop the voice AI platform from routing calls for the number."""
        pass

    @abstractmethod
    async def relinquish(self, resource: PhoneResource) -> None:
        """Give the number back to wherever it came from."""
        pass


class CarrierNumberSource(NumberSource):
    """Buys numbers from the telephony carrier on demand."""

    source = PhoneSource.CARRIER

    def __init__(
        self,
        session: AsyncSession,
        telephony: TelephonyProvider,
        voice_ai: VoiceAIProvider,
        credential_id: str | None = None,
        routing_app_id: str | None = None,
        settings: ProvisioningSettings | None = None,
    ):
        """
        Args:
            session: Database session; each persisted number is committed
            telephony: Carrier to search, purchase and release numbers on
            voice_ai: Voice AI platform numbers are imported into
            credential_id: Voice AI credential for the carrier account
            routing_app_id: Carrier voice application to route numbers to
            settings: Provisioning settings, defaults to the global instance
        """
        self.session = session
        self.telephony = telephony
        self.voice_ai = voice_ai
        self.credential_id = credential_id
        self.routing_app_id = routing_app_id
        self.settings = settings or get_provisioning_settings()
        self.phone_repository = PhoneResourceRepository(session)

    async def preflight(self) -> None:
        if self.voice_ai.requires_carrier_credential and not self.credential_id:
            raise MissingCredentialsError(
                f"A voice AI credential for {self.telephony.carrier_name} is required "
                "before purchasing numbers. Set VAPI_CARRIER_CREDENTIAL_ID."
            )
        logger.debug("[Provisioning] Pre-flight check passed", source=self.source.value)

    async def acquire(
        self,
        tenant_id: str,
        assistant_id: str | None,
        count: int,
        region: str | None = None,
        adopt: list[OwnedNumber] | None = None,
    ) -> ProvisionResult:
        result = ProvisionResult(requested=count)
        owned = list(adopt or [])[:count]
        to_purchase = count - len(owned)

        if owned:
            logger.info(
                "[Provisioning] Adopting previously purchased numbers",
                tenant_id=tenant_id,
                count=len(owned),
            )

        if to_purchase > 0:
            candidates = await self.telephony.search_available_numbers(
                to_purchase, region
            )
            if not candidates and not owned:
                raise NoNumbersAvailableError("No phone numbers available")
            if candidates:
                owned.extend(
                    await self.telephony.purchase_numbers(candidates[:to_purchase])
                )
            if len(owned) < count:
                logger.warning(
                    "[Provisioning] Carrier offered fewer numbers than requested",
                    tenant_id=tenant_id,
                    requested=count,
                    available=len(owned),
                )

        for number in owned:
            provisioned, failure = await self._attach(tenant_id, assistant_id, number)
            if provisioned is not None:
                result.numbers.append(provisioned)
            else:
                result.failures.append(failure)

        result.provisioned = len(result.numbers)
        return result

    async def _attach(
        self, tenant_id: str, assistant_id: str | None, number: OwnedNumber
    ) -> tuple[ProvisionedNumber | None, NumberFailure | None]:
        stage = FailureStage.ROUTING
        try:
            if self.routing_app_id:
                await self.telephony.assign_to_routing_app(
                    number.carrier_id, self.routing_app_id
                )

            stage = FailureStage.IMPORT
            label = await self._next_label(tenant_id)
            imported = await self.voice_ai.import_phone_number(
                number.phone_number,
                self.telephony.carrier_name,
                ImportPhoneNumberOptions(
                    name=f"{label}-{tenant_id[:8]}",
                    assistant_id=assistant_id,
                    credential_id=self.credential_id,
                ),
            )

            stage = FailureStage.ASSIGN
            if assistant_id:
                await self.voice_ai.assign_assistant_to_number(imported.id, assistant_id)

            stage = FailureStage.PERSIST
            resource = await self.phone_repository.create(
                tenant_id=tenant_id,
                phone_number=number.phone_number,
                external_carrier_id=number.carrier_id,
                external_voice_id=imported.id,
                assigned_assistant_id=assistant_id,
                source=PhoneSource.CARRIER,
                label=label,
            )
            await self.session.commit()
        except (TelephonyError, VoiceAIError, SQLAlchemyError) as e:
            if isinstance(e, SQLAlchemyError):
                await self.session.rollback()
            message = getattr(e, "message", None) or str(e)
            logger.error(
                "[Provisioning] Failed to provision number",
                tenant_id=tenant_id,
                phone_number=number.phone_number,
                stage=stage.value,
                error=message,
            )
            return None, NumberFailure(
                phone_number=number.phone_number,
                carrier_id=number.carrier_id,
                stage=stage,
                error=message,
            )

        logger.info(
            "[Provisioning] Provisioned number",
            tenant_id=tenant_id,
            phone_number=number.phone_number,
            phone_resource_id=resource.id,
        )
        return (
            ProvisionedNumber(
                phone_number=number.phone_number,
                carrier_id=number.carrier_id,
                voice_id=imported.id,
                phone_resource_id=resource.id,
            ),
            None,
        )

    async def detach_voice(self, resource: PhoneResource) -> None:
        if resource.external_voice_id:
            await self.voice_ai.delete_phone_number(resource.external_voice_id)

    async def relinquish(self, resource: PhoneResource) -> None:
        if resource.external_carrier_id:
            await self.telephony.release_number(resource.external_carrier_id)

    async def _next_label(self, tenant_id: str) -> str:
        active = await self.phone_repository.count_active(tenant_id)
        return f"{self.settings.number_label_prefix} {active + 1}"


class PoolNumberSource(NumberSource):
    """Assigns numbers from the regional pool."""

    source = PhoneSource.POOL

    def __init__(self, allocator: PoolAllocator):
        self.allocator = allocator
        self.voice_ai = allocator.voice_ai

    async def preflight(self) -> None:
        if self.voice_ai.requires_carrier_credential and not self.allocator.credential_id:
            raise MissingCredentialsError(
                "A voice AI credential for the pool SIP trunk is required. "
                "Set VAPI_POOL_CREDENTIAL_ID."
            )

    async def acquire(
        self,
        tenant_id: str,
        assistant_id: str | None,
        count: int,
        region: str | None = None,
        adopt: list[OwnedNumber] | None = None,
    ) -> ProvisionResult:
        # Pool numbers are never bought per tenant, so there is nothing to adopt
        if adopt:
            logger.warning(
                "[NumberPool] Ignoring adopted carrier numbers for pool tenant",
                tenant_id=tenant_id,
                count=len(adopt),
            )

        result = ProvisionResult(requested=count)
        for _ in range(count):
            try:
                assignment = await self.allocator.assign(
                    tenant_id, region=region, assistant_id=assistant_id
                )
            except VoiceAIError as e:
                result.failures.append(
                    NumberFailure(
                        stage=FailureStage.IMPORT,
                        error=e.message,
                    )
                )
                continue

            result.numbers.append(
                ProvisionedNumber(
                    phone_number=assignment.pool_entry.phone_number,
                    carrier_id=assignment.pool_entry.external_carrier_id,
                    voice_id=assignment.phone_resource.external_voice_id,
                    phone_resource_id=assignment.phone_resource_id,
                )
            )

        result.provisioned = len(result.numbers)
        return result

    async def detach_voice(self, resource: PhoneResource) -> None:
        # Keep the import so the next tenant skips it; just unroute the assistant
        if resource.external_voice_id:
            await self.voice_ai.assign_assistant_to_number(
                resource.external_voice_id, None
            )

    async def relinquish(self, resource: PhoneResource) -> None:
        if resource.pool_entry_id is None:
            return
        returned = await self.allocator.return_to_pool(
            resource.pool_entry_id, resource.tenant_id
        )
        if not returned:
            logger.warning(
                "[NumberPool] Pool entry was no longer held by tenant",
                tenant_id=resource.tenant_id,
                pool_entry_id=resource.pool_entry_id,
            )
