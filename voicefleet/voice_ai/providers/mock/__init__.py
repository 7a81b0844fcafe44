"""In-memory Voice AI provider."""

from voicefleet.voice_ai.providers.mock.provider import MockVoiceAIProvider

__all__ = ["MockVoiceAIProvider"]
