"""
Telephony provider factory.

The composition root calls this once per process (or per call when a
different carrier is needed) and hands the instance to the provisioning
components.
"""

from twilio.rest import Client

from voicefleet.telephony.base import TelephonyProvider
from voicefleet.telephony.config import (
    TelephonySettings,
    TwilioSettings,
    get_telephony_settings,
)
from voicefleet.telephony.constants import TelephonyProvider as TelephonyProviderEnum
from voicefleet.telephony.providers.mock import MockTelephonyProvider
from voicefleet.telephony.providers.twilio import (
    TwilioNumbersClient,
    TwilioTelephonyProvider,
)
from voicefleet.utils.logger import logger


def create_twilio_client(settings: TwilioSettings | None = None) -> Client:
    """
    Build the Twilio REST client for the platform account.

    Returns:
        Configured Twilio REST client
    """
    settings = settings or TwilioSettings()
    return Client(settings.account_sid, settings.auth_token)


def create_telephony_provider(
    settings: TelephonySettings | None = None,
    provider_type: TelephonyProviderEnum | None = None,
) -> TelephonyProvider:
    """
    Create a telephony provider instance based on configuration.

    Args:
        settings: Telephony settings, defaults to the global instance
        provider_type: Explicit provider override for this one instance

    Returns:
        TelephonyProvider: The configured carrier

    Raises:
        ValueError: If the configured provider is not supported
    """
    settings = settings or get_telephony_settings()
    provider_type = provider_type or settings.provider

    if provider_type == TelephonyProviderEnum.TWILIO:
        logger.info("Creating Twilio telephony provider")
        return TwilioTelephonyProvider(
            TwilioNumbersClient(create_twilio_client()), settings=settings
        )
    elif provider_type == TelephonyProviderEnum.MOCK:
        logger.info("Creating mock telephony provider")
        return MockTelephonyProvider()
    else:
        raise ValueError(f"Unsupported telephony provider: {provider_type}")
