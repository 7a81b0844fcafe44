"""Twilio telephony carrier."""

from voicefleet.telephony.providers.twilio.client import TwilioNumbersClient
from voicefleet.telephony.providers.twilio.provider import TwilioTelephonyProvider

__all__ = ["TwilioNumbersClient", "TwilioTelephonyProvider"]
