"""Voice AI platform integration: phone number imports and assistants."""

from voicefleet.voice_ai.base import VoiceAIError, VoiceAIProvider

__all__ = ["VoiceAIError", "VoiceAIProvider"]
