"""
Abstract base classes for Voice AI providers.

This module defines the abstract interface that all Voice AI providers
must implement for phone number and assistant lifecycle management.
"""

from abc import ABC, abstractmethod

from voicefleet.voice_ai.constants import VoiceAIErrorCode
from voicefleet.voice_ai.schemas import (
    AssistantConfig,
    CreatedAssistant,
    ImportedPhoneNumber,
    ImportPhoneNumberOptions,
)


class VoiceAIProvider(ABC):
    """Abstract interface for Voice AI providers."""

    # Whether importing a carrier number needs a stored credential id
    requires_carrier_credential: bool = True

    @abstractmethod
    async def import_phone_number(
        self,
        number: str,
        carrier_name: str,
        options: ImportPhoneNumberOptions,
    ) -> ImportedPhoneNumber:
        """
        Import a carrier-owned phone number into the voice AI platform.

        Args:
            number: Phone number in E.164 format
            carrier_name: Carrier the number belongs to (twilio, telnyx, byo-sip-trunk)
            options: Display name, assistant id and credential id

        Returns:
            ImportedPhoneNumber: The imported number with its voice AI id

        Raises:
            VoiceAIError: If the import fails
        """
        pass

    @abstractmethod
    async def delete_phone_number(self, voice_id: str) -> None:
        """
        Delete a phone number from the voice AI platform.

        Args:
            voice_id: Voice AI phone number id

        Raises:
            VoiceAIError: With NOT_FOUND if the number is already gone,
                HTTP_ERROR for other failures
        """
        pass

    @abstractmethod
    async def assign_assistant_to_number(
        self, voice_id: str, assistant_id: str | None
    ) -> None:
        """
        Route a phone number to an assistant, or detach it when assistant_id is None.

        Raises:
            VoiceAIError: If the update fails
        """
        pass

    @abstractmethod
    async def create_assistant(self, config: AssistantConfig) -> CreatedAssistant:
        """
        Create a voice assistant.

        Raises:
            VoiceAIError: If creation fails
        """
        pass

    @abstractmethod
    async def delete_assistant(self, assistant_id: str) -> None:
        """
        Delete a voice assistant.

        Raises:
            VoiceAIError: With NOT_FOUND if the assistant is already gone
        """
        pass


class VoiceAIError(Exception):
    """Base exception for Voice AI-related errors."""

    def __init__(self, message: str, error_code: VoiceAIErrorCode | None = None):
        """
        Initialize Voice AI error.

        Args:
            message: Error message
            error_code: Optional provider-agnostic error code
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    @property
    def is_not_found(self) -> bool:
        return self.error_code == VoiceAIErrorCode.NOT_FOUND
