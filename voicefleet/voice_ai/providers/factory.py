"""
Voice AI provider factory.

Providers are built from configuration by the composition root and passed
into the provisioning components explicitly; there is no shared instance.
"""

from voicefleet.utils.logger import logger
from voicefleet.voice_ai.base import VoiceAIProvider
from voicefleet.voice_ai.config import VoiceAISettings, get_voice_ai_settings
from voicefleet.voice_ai.constants import VoiceAIProvider as VoiceAIProviderEnum
from voicefleet.voice_ai.providers.mock import MockVoiceAIProvider
from voicefleet.voice_ai.providers.vapi import VapiProvider


def create_voice_ai_provider(
    settings: VoiceAISettings | None = None,
    provider_type: VoiceAIProviderEnum | None = None,
) -> VoiceAIProvider:
    """
    Create a Voice AI provider instance based on configuration.

    Args:
        settings: Voice AI settings, defaults to the global instance
        provider_type: Explicit provider override for this one instance

    Returns:
        VoiceAIProvider: The configured Voice AI provider instance

    Raises:
        ValueError: If the configured provider is not supported
    """
    settings = settings or get_voice_ai_settings()
    provider_type = provider_type or settings.provider

    if provider_type == VoiceAIProviderEnum.VAPI:
        logger.info("Creating Vapi Voice AI provider")
        return VapiProvider(voice_ai_settings=settings)
    elif provider_type == VoiceAIProviderEnum.MOCK:
        logger.info("Creating mock Voice AI provider")
        return MockVoiceAIProvider()
    else:
        raise ValueError(f"Unsupported Voice AI provider: {provider_type}")
