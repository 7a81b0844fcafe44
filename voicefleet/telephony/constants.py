"""
Telephony carrier constants and enums.
"""

from enum import Enum


class TelephonyProvider(str, Enum):
    """Available telephony carriers."""

    TWILIO = "twilio"
    MOCK = "mock"


class TelephonyErrorCode(str, Enum):
    """Standard error codes across telephony carriers."""

    NOT_FOUND = "NOT_FOUND"
    HTTP_ERROR = "HTTP_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    NO_INVENTORY = "NO_INVENTORY"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
