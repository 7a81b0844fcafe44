"""
Vapi provider implementation for Voice AI operations.

This module implements the VoiceAIProvider interface for Vapi. Deletions go
through the Vapi SDK; imports and updates use the REST API directly because
their payloads depend on the carrier.
"""

from http import HTTPStatus
from typing import Any

import httpx
from vapi import AsyncVapi
from vapi.core.api_error import ApiError

from voicefleet.utils.logger import logger
from voicefleet.utils.phone import format_e164
from voicefleet.voice_ai.base import VoiceAIError, VoiceAIProvider
from voicefleet.voice_ai.config import (
    VapiSettings,
    VoiceAISettings,
    get_vapi_settings,
    get_voice_ai_settings,
)
from voicefleet.voice_ai.constants import (
    MAX_PHONE_NUMBER_NAME_LENGTH,
    VoiceAIErrorCode,
)
from voicefleet.voice_ai.constants import VoiceAIProvider as VoiceAIProviderEnum
from voicefleet.voice_ai.schemas import (
    AssistantConfig,
    CreatedAssistant,
    ImportedPhoneNumber,
    ImportPhoneNumberOptions,
)


def _error_code_for_status(status_code: int | None) -> VoiceAIErrorCode:
    if status_code == HTTPStatus.NOT_FOUND:
        return VoiceAIErrorCode.NOT_FOUND
    if status_code in (HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN):
        return VoiceAIErrorCode.AUTHENTICATION_ERROR
    return VoiceAIErrorCode.HTTP_ERROR


class VapiProvider(VoiceAIProvider):
    """Vapi-specific implementation of Voice AI provider."""

    provider_name = VoiceAIProviderEnum.VAPI

    def __init__(
        self,
        vapi_settings: VapiSettings | None = None,
        voice_ai_settings: VoiceAISettings | None = None,
        http_client: httpx.AsyncClient | None = None,
        sdk_client: AsyncVapi | None = None,
    ):
        """
        Initialize the Vapi provider with configuration.

        Args:
            vapi_settings: Vapi settings, defaults to the global instance
            voice_ai_settings: General voice AI settings, defaults to the global instance
            http_client: Optional preconfigured HTTP client (used in tests)
            sdk_client: Optional preconfigured Vapi SDK client (used in tests)
        """
        self._vapi_settings = vapi_settings or get_vapi_settings()
        self._voice_ai_settings = voice_ai_settings or get_voice_ai_settings()

        if not self._vapi_settings.api_key:
            raise ValueError("VAPI_API_KEY environment variable is required")

        self._http = http_client or httpx.AsyncClient(
            base_url=self._vapi_settings.base_url,
            headers={
                "Authorization": f"Bearer {self._vapi_settings.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self._voice_ai_settings.request_timeout,
        )
        self._client = sdk_client or AsyncVapi(
            token=self._vapi_settings.api_key,
            base_url=self._vapi_settings.base_url,
            timeout=self._voice_ai_settings.request_timeout,
        )

    async def import_phone_number(
        self,
        number: str,
        carrier_name: str,
        options: ImportPhoneNumberOptions,
    ) -> ImportedPhoneNumber:
        formatted = format_e164(number)
        name = (options.name or f"Number-{formatted[-4:]}")[
            :MAX_PHONE_NUMBER_NAME_LENGTH
        ]

        payload: dict[str, Any] = {
            "provider": carrier_name,
            "number": formatted,
            "name": name,
        }
        if options.credential_id:
            payload["credentialId"] = options.credential_id
        else:
            logger.warning(
                "[Vapi Provider] No credential id supplied - import may fail",
                carrier=carrier_name,
            )
        if options.assistant_id:
            payload["assistantId"] = options.assistant_id

        logger.info(
            "[Vapi Provider] Importing phone number",
            phone_number=formatted,
            carrier=carrier_name,
        )
        data = await self._request("POST", "/phone-number", payload, "import number")
        return self._parse_phone_number(data, fallback_number=formatted)

    async def delete_phone_number(self, voice_id: str) -> None:
        logger.info("[Vapi Provider] Deleting phone number", voice_id=voice_id)
        try:
            await self._client.phone_numbers.delete(id=voice_id)
        except ApiError as e:
            raise VoiceAIError(
                f"Error deleting phone number: {e.body}",
                error_code=_error_code_for_status(e.status_code),
            )

    async def assign_assistant_to_number(
        self, voice_id: str, assistant_id: str | None
    ) -> None:
        logger.info(
            "[Vapi Provider] Updating phone number assistant",
            voice_id=voice_id,
            assistant_id=assistant_id,
        )
        await self._request(
            "PATCH",
            f"/phone-number/{voice_id}",
            {"assistantId": assistant_id},
            "assign assistant",
        )

    async def create_assistant(self, config: AssistantConfig) -> CreatedAssistant:
        payload = {
            "name": config.name,
            "firstMessage": config.first_message,
            "firstMessageMode": "assistant-speaks-first",
            "maxDurationSeconds": config.max_duration_seconds,
            "model": {
                "provider": config.model_provider,
                "model": config.model,
                "messages": [{"role": "system", "content": config.system_prompt}],
            },
            "voice": {
                "provider": config.voice_provider,
                "voiceId": config.voice_id,
            },
        }
        logger.info("[Vapi Provider] Creating assistant", assistant_name=config.name)
        data = await self._request("POST", "/assistant", payload, "create assistant")
        if not data.get("id"):
            raise VoiceAIError(
                "Vapi returned an assistant without an id",
                error_code=VoiceAIErrorCode.INVALID_RESPONSE,
            )
        return CreatedAssistant(id=data["id"], name=data.get("name"))

    async def delete_assistant(self, assistant_id: str) -> None:
        logger.info("[Vapi Provider] Deleting assistant", assistant_id=assistant_id)
        try:
            await self._client.assistants.delete(id=assistant_id)
        except ApiError as e:
            raise VoiceAIError(
                f"Error deleting assistant: {e.body}",
                error_code=_error_code_for_status(e.status_code),
            )

    async def _request(
        self, method: str, path: str, payload: dict[str, Any], action: str
    ) -> dict[str, Any]:
        try:
            response = await self._http.request(method, path, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"[Vapi Provider] Failed to {action}",
                status_code=e.response.status_code,
                response_text=e.response.text,
            )
            raise VoiceAIError(
                f"Failed to {action}: {e.response.status_code} - {e.response.text}",
                error_code=_error_code_for_status(e.response.status_code),
            )
        except httpx.HTTPError as e:
            logger.error(f"[Vapi Provider] HTTP error during {action}", error=str(e))
            raise VoiceAIError(
                f"HTTP error during {action}: {str(e)}",
                error_code=VoiceAIErrorCode.HTTP_ERROR,
            )

        if not response.content:
            return {}
        return response.json()

    def _parse_phone_number(
        self, data: dict[str, Any], fallback_number: str
    ) -> ImportedPhoneNumber:
        if not data.get("id"):
            raise VoiceAIError(
                "Vapi returned a phone number without an id",
                error_code=VoiceAIErrorCode.INVALID_RESPONSE,
            )
        return ImportedPhoneNumber(
            id=data["id"],
            number=data.get("number") or fallback_number,
            assistant_id=data.get("assistantId"),
        )
