"""
Telephony carrier implementations.
"""

from voicefleet.telephony.providers.factory import (
    create_telephony_provider,
    create_twilio_client,
)
from voicefleet.telephony.providers.mock import MockTelephonyProvider
from voicefleet.telephony.providers.twilio import TwilioTelephonyProvider

__all__ = [
    "MockTelephonyProvider",
    "TwilioTelephonyProvider",
    "create_telephony_provider",
    "create_twilio_client",
]
