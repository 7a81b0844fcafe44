"""Telephony carrier integration: number search, purchase, routing and release."""

from voicefleet.telephony.base import TelephonyError, TelephonyProvider

__all__ = ["TelephonyError", "TelephonyProvider"]
