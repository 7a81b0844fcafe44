"""Tests for the Twilio telephony provider."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from twilio.base.exceptions import TwilioRestException

from voicefleet.telephony.base import TelephonyError
from voicefleet.telephony.config import TelephonySettings
from voicefleet.telephony.constants import TelephonyErrorCode
from voicefleet.telephony.providers.twilio import (
    TwilioNumbersClient,
    TwilioTelephonyProvider,
)
from voicefleet.telephony.schemas import AvailableNumber


def twilio_error(status: int, msg: str = "error") -> TwilioRestException:
    return TwilioRestException(status, "/2010-04-01/Accounts/AC123", msg=msg)


@pytest.fixture
def client():
    """Create a mock Twilio numbers client."""
    return AsyncMock(spec=TwilioNumbersClient)


@pytest.fixture
def provider(client):
    return TwilioTelephonyProvider(client, settings=TelephonySettings(default_region="US"))


@pytest.mark.asyncio
async def test_search_available_numbers(provider, client):
    # Setup
    client.list_available_local.return_value = [
        MagicMock(phone_number="+14155550101", iso_country="US", locality="Oakland"),
        MagicMock(phone_number="+14155550102", iso_country="US", locality="Oakland"),
    ]

    # Execute
    numbers = await provider.search_available_numbers(2)

    # Assert
    client.list_available_local.assert_awaited_once_with("US", 2)
    assert [n.phone_number for n in numbers] == ["+14155550101", "+14155550102"]
    assert numbers[0].locality == "Oakland"


@pytest.mark.asyncio
async def test_search_uses_requested_region(provider, client):
    client.list_available_local.return_value = []

    assert await provider.search_available_numbers(1, region="GB") == []
    client.list_available_local.assert_awaited_once_with("GB", 1)


@pytest.mark.asyncio
async def test_search_failure_raises_telephony_error(provider, client):
    client.list_available_local.side_effect = twilio_error(401, "bad credentials")

    with pytest.raises(TelephonyError) as exc_info:
        await provider.search_available_numbers(1)

    assert exc_info.value.error_code == TelephonyErrorCode.AUTHENTICATION_ERROR


@pytest.mark.asyncio
async def test_purchase_keeps_going_after_a_failure(provider, client):
    """Numbers bought before a failure are still returned."""
    client.purchase.side_effect = [
        MagicMock(sid="PN1", phone_number="+14155550101", status="in-use"),
        twilio_error(400, "number no longer available"),
        MagicMock(sid="PN3", phone_number="+14155550103", status="in-use"),
    ]
    candidates = [
        AvailableNumber(phone_number=f"+1415555010{i}") for i in range(1, 4)
    ]

    owned = await provider.purchase_numbers(candidates)

    assert [n.carrier_id for n in owned] == ["PN1", "PN3"]
    assert client.purchase.await_count == 3


@pytest.mark.asyncio
async def test_purchase_raises_when_nothing_bought(provider, client):
    client.purchase.side_effect = twilio_error(400, "number no longer available")

    with pytest.raises(TelephonyError) as exc_info:
        await provider.purchase_numbers([AvailableNumber(phone_number="+14155550101")])

    assert exc_info.value.error_code == TelephonyErrorCode.HTTP_ERROR


@pytest.mark.asyncio
async def test_release_not_found_maps_error_code(provider, client):
    client.release.side_effect = twilio_error(404, "not found")

    with pytest.raises(TelephonyError) as exc_info:
        await provider.release_number("PN1")

    assert exc_info.value.is_not_found


@pytest.mark.asyncio
async def test_assign_to_routing_app(provider, client):
    await provider.assign_to_routing_app("PN1", "AP1")

    client.set_voice_application.assert_awaited_once_with("PN1", "AP1")


@pytest.mark.asyncio
async def test_numbers_client_wraps_sync_sdk():
    """The async wrapper runs the blocking SDK call in a thread."""
    rest_client = MagicMock()
    rest_client.incoming_phone_numbers.create.return_value = MagicMock(sid="PN1")

    instance = await TwilioNumbersClient(rest_client).purchase("+14155550101")

    assert instance.sid == "PN1"
    rest_client.incoming_phone_numbers.create.assert_called_once_with(
        phone_number="+14155550101"
    )
