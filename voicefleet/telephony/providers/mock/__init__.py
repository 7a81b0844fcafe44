"""In-memory telephony carrier."""

from voicefleet.telephony.providers.mock.provider import MockTelephonyProvider

__all__ = ["MockTelephonyProvider"]
