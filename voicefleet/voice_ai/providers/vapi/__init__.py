"""Vapi Voice AI provider."""

from voicefleet.voice_ai.providers.vapi.provider import VapiProvider

__all__ = ["VapiProvider"]
