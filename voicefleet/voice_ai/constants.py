"""
Voice AI integration constants and enums.

This module contains the constants, enums, and static values used
across the Voice AI integration.
"""

import re
from enum import Enum


class VoiceAIProvider(str, Enum):
    """Available Voice AI providers."""

    VAPI = "vapi"
    MOCK = "mock"


class VoiceAIErrorCode(str, Enum):
    """Standard error codes across Voice AI providers."""

    NOT_FOUND = "NOT_FOUND"
    HTTP_ERROR = "HTTP_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class CarrierName(str, Enum):
    """Carrier names the voice AI platform accepts when importing a number."""

    TWILIO = "twilio"
    TELNYX = "telnyx"
    BYO_SIP_TRUNK = "byo-sip-trunk"


# Vapi rejects phone number names longer than this
MAX_PHONE_NUMBER_NAME_LENGTH = 40

# Vapi resource ids are UUIDs; anything else is a leftover mock or a bad response
EXTERNAL_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_valid_external_id(value: str | None) -> bool:
    """Check whether a voice AI resource id is well-formed."""
    return bool(value) and EXTERNAL_ID_PATTERN.match(value) is not None
