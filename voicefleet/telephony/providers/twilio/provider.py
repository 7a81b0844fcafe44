"""
Twilio telephony provider implementation.
"""

from http import HTTPStatus

from twilio.base.exceptions import TwilioRestException

from voicefleet.telephony.base import TelephonyError, TelephonyProvider
from voicefleet.telephony.config import TelephonySettings, get_telephony_settings
from voicefleet.telephony.constants import TelephonyErrorCode
from voicefleet.telephony.constants import TelephonyProvider as TelephonyProviderEnum
from voicefleet.telephony.providers.twilio.client import TwilioNumbersClient
from voicefleet.telephony.schemas import AvailableNumber, OwnedNumber
from voicefleet.utils.logger import logger
from voicefleet.utils.phone import format_e164
from voicefleet.voice_ai.constants import CarrierName


def map_twilio_error(e: TwilioRestException) -> TelephonyErrorCode:
    """
    Map a Twilio REST error to a provider-agnostic error code.

    Args:
        e: Exception raised by the Twilio SDK

    Returns:
        TelephonyErrorCode for the HTTP status
    """
    if e.status == HTTPStatus.NOT_FOUND:
        return TelephonyErrorCode.NOT_FOUND
    if e.status in (HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN):
        return TelephonyErrorCode.AUTHENTICATION_ERROR
    return TelephonyErrorCode.HTTP_ERROR


class TwilioTelephonyProvider(TelephonyProvider):
    """Twilio implementation of the TelephonyProvider interface."""

    provider_name = TelephonyProviderEnum.TWILIO
    carrier_name = CarrierName.TWILIO.value

    def __init__(
        self,
        client: TwilioNumbersClient,
        settings: TelephonySettings | None = None,
    ):
        """
        Initialize with a shared Twilio client.

        Args:
            client: Async wrapper around the platform Twilio account
            settings: Telephony settings, defaults to the global instance
        """
        self.client = client
        self.settings = settings or get_telephony_settings()

    async def search_available_numbers(
        self, count: int, region: str | None = None
    ) -> list[AvailableNumber]:
        country = region or self.settings.default_region
        logger.info("[TWILIO] Searching available numbers", country=country, count=count)

        try:
            results = await self.client.list_available_local(country, count)
        except TwilioRestException as e:
            logger.error("[TWILIO] Number search failed", country=country, error=e.msg)
            raise TelephonyError(
                f"Failed to search phone numbers: {e.msg}",
                error_code=map_twilio_error(e),
            )

        return [
            AvailableNumber(
                phone_number=format_e164(n.phone_number, country),
                region=n.iso_country,
                locality=n.locality,
            )
            for n in results
        ]

    async def purchase_numbers(
        self, candidates: list[AvailableNumber]
    ) -> list[OwnedNumber]:
        owned: list[OwnedNumber] = []
        last_error: TwilioRestException | None = None

        for candidate in candidates:
            try:
                instance = await self.client.purchase(candidate.phone_number)
            except TwilioRestException as e:
                # Earlier purchases in this batch are already billed; keep going
                logger.error(
                    "[TWILIO] Failed to purchase number",
                    phone_number=candidate.phone_number,
                    error=e.msg,
                )
                last_error = e
                continue

            owned.append(
                OwnedNumber(
                    carrier_id=instance.sid,
                    phone_number=instance.phone_number,
                    status=instance.status,
                )
            )
            logger.info(
                "[TWILIO] Purchased number",
                phone_number=instance.phone_number,
                sid=instance.sid,
            )

        if not owned and last_error is not None:
            raise TelephonyError(
                f"Failed to purchase phone numbers: {last_error.msg}",
                error_code=map_twilio_error(last_error),
            )
        return owned

    async def release_number(self, carrier_id: str) -> None:
        logger.info("[TWILIO] Releasing number", sid=carrier_id)
        try:
            await self.client.release(carrier_id)
        except TwilioRestException as e:
            raise TelephonyError(
                f"Failed to release phone number {carrier_id}: {e.msg}",
                error_code=map_twilio_error(e),
            )

    async def assign_to_routing_app(self, carrier_id: str, app_id: str) -> None:
        try:
            await self.client.set_voice_application(carrier_id, app_id)
        except TwilioRestException as e:
            raise TelephonyError(
                f"Failed to route {carrier_id} to application {app_id}: {e.msg}",
                error_code=map_twilio_error(e),
            )
