"""
Twilio client wrapper for async operations.

This module provides async wrappers around the synchronous Twilio SDK
for phone number inventory management.
"""

import asyncio

from twilio.rest import Client
from twilio.rest.api.v2010.account.available_phone_number_country.local import (
    LocalInstance,
)
from twilio.rest.api.v2010.account.incoming_phone_number import (
    IncomingPhoneNumberInstance,
)


class TwilioNumbersClient:
    """Async wrapper for Twilio phone number operations."""

    def __init__(self, client: Client):
        """
        Initialize client wrapper.

        Args:
            client: Configured Twilio REST client
        """
        self.client = client

    async def list_available_local(
        self, country_code: str, limit: int
    ) -> list[LocalInstance]:
        """
        List purchasable local numbers with voice capability.

        Args:
            country_code: ISO country code
            limit: Maximum results

        Returns:
            List of available number instances
        """
        return await asyncio.to_thread(
            self.client.available_phone_numbers(country_code).local.list,
            voice_enabled=True,
            limit=limit,
        )

    async def purchase(self, phone_number: str) -> IncomingPhoneNumberInstance:
        """
        Buy a number onto the account.

        Args:
            phone_number: Number in E.164 format

        Returns:
            The purchased IncomingPhoneNumberInstance
        """
        return await asyncio.to_thread(
            self.client.incoming_phone_numbers.create,
            phone_number=phone_number,
        )

    async def release(self, sid: str) -> bool:
        """
        Release a number from the account.

        Args:
            sid: Incoming phone number SID (PNxxx)
        """
        return await asyncio.to_thread(self.client.incoming_phone_numbers(sid).delete)

    async def set_voice_application(
        self, sid: str, application_sid: str
    ) -> IncomingPhoneNumberInstance:
        """
        Route inbound calls on a number to a TwiML application.

        Args:
            sid: Incoming phone number SID
            application_sid: TwiML application SID (APxxx)
        """
        return await asyncio.to_thread(
            self.client.incoming_phone_numbers(sid).update,
            voice_application_sid=application_sid,
        )
