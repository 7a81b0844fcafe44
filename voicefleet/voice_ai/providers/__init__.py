"""
Voice AI provider implementations.

This package contains specific implementations for different Voice AI systems.
"""

from voicefleet.voice_ai.providers.factory import create_voice_ai_provider
from voicefleet.voice_ai.providers.mock import MockVoiceAIProvider
from voicefleet.voice_ai.providers.vapi import VapiProvider

__all__ = [
    "MockVoiceAIProvider",
    "VapiProvider",
    "create_voice_ai_provider",
]
