"""
Configuration management for the Voice AI integration package.

This module handles environment variable configuration and validation
for Voice AI integrations using Pydantic settings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from voicefleet.utils.logger import logger
from voicefleet.voice_ai.constants import VoiceAIProvider


class VoiceAISettings(BaseSettings):
    """General configuration for Voice AI integrations."""

    model_config = SettingsConfigDict(
        case_sensitive=False, extra="ignore", env_prefix="VOICE_AI_"
    )

    provider: VoiceAIProvider = Field(
        default=VoiceAIProvider.VAPI, description="Voice AI provider to use"
    )
    request_timeout: int = Field(
        default=30, description="HTTP request timeout in seconds"
    )


class VapiSettings(BaseSettings):
    """Vapi-specific configuration."""

    model_config = SettingsConfigDict(
        case_sensitive=False, extra="ignore", env_prefix="VAPI_"
    )

    api_key: str = Field(description="Vapi API key for authentication")
    base_url: str = Field(
        default="https://api.vapi.ai", description="Vapi API base URL"
    )
    carrier_credential_id: str | None = Field(
        default=None,
        description="Vapi credential id for the on-demand carrier account",
    )
    pool_credential_id: str | None = Field(
        default=None,
        description="Vapi credential id for the SIP trunk serving pool numbers",
    )


_voice_ai_settings: VoiceAISettings | None = None
_vapi_settings: VapiSettings | None = None


def get_voice_ai_settings() -> VoiceAISettings:
    """
    Get the global Voice AI settings instance.

    Returns:
        VoiceAISettings: The global settings instance
    """
    global _voice_ai_settings
    if _voice_ai_settings is None:
        _voice_ai_settings = VoiceAISettings()
        logger.info("VoiceAISettings loaded", provider=_voice_ai_settings.provider)
    return _voice_ai_settings


def get_vapi_settings() -> VapiSettings:
    """
    Get the global Vapi settings instance.

    Returns:
        VapiSettings: The global Vapi settings instance
    """
    global _vapi_settings
    if _vapi_settings is None:
        _vapi_settings = VapiSettings()
        logger.info(
            "VapiSettings loaded",
            has_carrier_credential=bool(_vapi_settings.carrier_credential_id),
            has_pool_credential=bool(_vapi_settings.pool_credential_id),
        )
    return _vapi_settings


def set_voice_ai_settings(settings: VoiceAISettings) -> None:
    global _voice_ai_settings
    _voice_ai_settings = settings


def set_vapi_settings(settings: VapiSettings) -> None:
    global _vapi_settings
    _vapi_settings = settings
