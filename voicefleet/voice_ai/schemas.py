"""
Voice AI Pydantic schemas for phone number and assistant management.
"""

from pydantic import BaseModel, Field


class ImportPhoneNumberOptions(BaseModel):
    """Options passed when importing a carrier number into the voice AI platform."""

    name: str | None = Field(None, description="Display name for the number")
    assistant_id: str | None = Field(
        None, description="Voice AI assistant to route inbound calls to"
    )
    credential_id: str | None = Field(
        None, description="Voice AI credential id for the carrier account"
    )


class ImportedPhoneNumber(BaseModel):
    """A phone number as known by the voice AI platform."""

    id: str = Field(..., description="Voice AI phone number id")
    number: str = Field(..., description="Phone number in E.164 format")
    assistant_id: str | None = Field(None, description="Assigned assistant id")


class AssistantConfig(BaseModel):
    """Configuration for creating a tenant's voice assistant."""

    name: str = Field(..., description="Assistant display name")
    first_message: str = Field(..., description="Greeting spoken on answer")
    system_prompt: str = Field(..., description="System prompt for the model")
    model_provider: str = Field(default="openai")
    model: str = Field(default="gpt-4o")
    voice_provider: str = Field(default="11labs")
    voice_id: str = Field(default="sarah")
    max_duration_seconds: int = Field(default=600)


class CreatedAssistant(BaseModel):
    """Assistant as returned by the voice AI platform."""

    id: str = Field(..., description="Voice AI assistant id")
    name: str | None = Field(None, description="Assistant display name")
