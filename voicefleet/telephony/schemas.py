"""
Pydantic schemas for carrier phone numbers.
"""

from pydantic import BaseModel, Field


class AvailableNumber(BaseModel):
    """A number offered by the carrier that is not yet owned."""

    phone_number: str = Field(..., description="Phone number in E.164 format")
    region: str | None = Field(None, description="ISO country code")
    locality: str | None = Field(None, description="City or rate center")


class OwnedNumber(BaseModel):
    """A number purchased on the carrier account."""

    carrier_id: str = Field(..., description="Carrier id for the number (e.g. Twilio PN sid)")
    phone_number: str = Field(..., description="Phone number in E.164 format")
    status: str | None = Field(None, description="Carrier-side status")
