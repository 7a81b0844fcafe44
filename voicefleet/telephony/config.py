"""
Telephony carrier configuration using Pydantic settings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from voicefleet.telephony.constants import TelephonyProvider
from voicefleet.utils.logger import logger


class TelephonySettings(BaseSettings):
    """General configuration for the telephony carrier."""

    model_config = SettingsConfigDict(
        case_sensitive=False, extra="ignore", env_prefix="TELEPHONY_"
    )

    provider: TelephonyProvider = Field(
        default=TelephonyProvider.TWILIO, description="Carrier to purchase numbers from"
    )
    default_region: str = Field(
        default="US", description="ISO country code used when none is given"
    )
    routing_app_id: str | None = Field(
        default=None,
        description="Carrier voice application that owned numbers are routed to",
    )


class TwilioSettings(BaseSettings):
    """
    Twilio account configuration.

    These credentials belong to the platform account and are shared by all
    tenants; each tenant only owns numbers on it.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False, extra="ignore", env_prefix="TWILIO_"
    )

    account_sid: str = Field(..., description="Twilio Account SID (ACxxx)")
    auth_token: str = Field(..., description="Twilio Auth Token")


_telephony_settings: TelephonySettings | None = None


def get_telephony_settings() -> TelephonySettings:
    """
    Get the global telephony settings instance.

    Returns:
        TelephonySettings: The global settings instance
    """
    global _telephony_settings
    if _telephony_settings is None:
        _telephony_settings = TelephonySettings()
        logger.info(
            "TelephonySettings loaded",
            provider=_telephony_settings.provider,
            default_region=_telephony_settings.default_region,
        )
    return _telephony_settings


def set_telephony_settings(settings: TelephonySettings) -> None:
    global _telephony_settings
    _telephony_settings = settings
