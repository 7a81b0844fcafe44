"""
Mock Voice AI provider for local development and tests.

Keeps assistants and phone numbers in memory and records every call so tests
can assert on ordering. Failures can be injected per operation.
"""

import asyncio
import uuid
from dataclasses import dataclass

from voicefleet.utils.logger import logger
from voicefleet.voice_ai.base import VoiceAIError, VoiceAIProvider
from voicefleet.voice_ai.constants import VoiceAIErrorCode
from voicefleet.voice_ai.constants import VoiceAIProvider as VoiceAIProviderEnum
from voicefleet.voice_ai.schemas import (
    AssistantConfig,
    CreatedAssistant,
    ImportedPhoneNumber,
    ImportPhoneNumberOptions,
)


@dataclass
class _InjectedFailure:
    operation: str
    match: str | None
    error_code: VoiceAIErrorCode
    remaining: int | None


class MockVoiceAIProvider(VoiceAIProvider):
    """Voice AI implementation backed by in-memory dictionaries."""

    provider_name = VoiceAIProviderEnum.MOCK
    requires_carrier_credential = False

    def __init__(self, simulate_delay: float = 0.0):
        self.simulate_delay = simulate_delay
        self.assistants: dict[str, CreatedAssistant] = {}
        self.phone_numbers: dict[str, ImportedPhoneNumber] = {}
        self.calls: list[tuple[str, str | None]] = []
        self._failures: list[_InjectedFailure] = []
        self._assistant_id_factory = lambda: str(uuid.uuid4())

    def inject_failure(
        self,
        operation: str,
        match: str | None = None,
        error_code: VoiceAIErrorCode = VoiceAIErrorCode.HTTP_ERROR,
        times: int | None = None,
    ) -> None:
        """
        Make an operation fail.

        Args:
            operation: Method name, e.g. "import_phone_number"
            match: Only fail when the primary argument equals this value
            error_code: Error code carried by the raised VoiceAIError
            times: Fail this many times, or forever when None
        """
        self._failures.append(_InjectedFailure(operation, match, error_code, times))

    def use_assistant_ids(self, *ids: str) -> None:
        """Return these ids from create_assistant, in order."""
        queue = list(ids)
        self._assistant_id_factory = lambda: queue.pop(0)

    async def import_phone_number(
        self,
        number: str,
        carrier_name: str,
        options: ImportPhoneNumberOptions,
    ) -> ImportedPhoneNumber:
        await self._enter("import_phone_number", number)
        imported = ImportedPhoneNumber(
            id=str(uuid.uuid4()), number=number, assistant_id=options.assistant_id
        )
        self.phone_numbers[imported.id] = imported
        return imported

    async def delete_phone_number(self, voice_id: str) -> None:
        await self._enter("delete_phone_number", voice_id)
        if self.phone_numbers.pop(voice_id, None) is None:
            raise VoiceAIError(
                f"Phone number {voice_id} not found",
                error_code=VoiceAIErrorCode.NOT_FOUND,
            )

    async def assign_assistant_to_number(
        self, voice_id: str, assistant_id: str | None
    ) -> None:
        await self._enter("assign_assistant_to_number", voice_id)
        imported = self.phone_numbers.get(voice_id)
        if imported is None:
            raise VoiceAIError(
                f"Phone number {voice_id} not found",
                error_code=VoiceAIErrorCode.NOT_FOUND,
            )
        imported.assistant_id = assistant_id

    async def create_assistant(self, config: AssistantConfig) -> CreatedAssistant:
        await self._enter("create_assistant", config.name)
        assistant = CreatedAssistant(id=self._assistant_id_factory(), name=config.name)
        self.assistants[assistant.id] = assistant
        return assistant

    async def delete_assistant(self, assistant_id: str) -> None:
        await self._enter("delete_assistant", assistant_id)
        if self.assistants.pop(assistant_id, None) is None:
            raise VoiceAIError(
                f"Assistant {assistant_id} not found",
                error_code=VoiceAIErrorCode.NOT_FOUND,
            )

    def count_calls(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    async def _enter(self, operation: str, argument: str | None) -> None:
        # Every collaborator call is a suspension point
        await asyncio.sleep(self.simulate_delay)
        self.calls.append((operation, argument))

        for failure in self._failures:
            if failure.operation != operation:
                continue
            if failure.match is not None and failure.match != argument:
                continue
            if failure.remaining is not None:
                if failure.remaining <= 0:
                    continue
                failure.remaining -= 1
            logger.debug(
                "[Mock Voice AI] Simulated failure", operation=operation, argument=argument
            )
            raise VoiceAIError(
                f"Simulated {operation} failure", error_code=failure.error_code
            )
