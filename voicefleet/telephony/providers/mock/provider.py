"""
Mock telephony carrier for local development and tests.

Generates sequential numbers, keeps owned numbers in memory and records every
call. Failures can be injected per operation.
"""

import asyncio
import itertools
import uuid

from voicefleet.telephony.base import TelephonyError, TelephonyProvider
from voicefleet.telephony.constants import TelephonyErrorCode
from voicefleet.telephony.constants import TelephonyProvider as TelephonyProviderEnum
from voicefleet.telephony.schemas import AvailableNumber, OwnedNumber
from voicefleet.voice_ai.constants import CarrierName


class MockTelephonyProvider(TelephonyProvider):
    """Carrier implementation backed by in-memory state."""

    provider_name = TelephonyProviderEnum.MOCK
    carrier_name = CarrierName.TWILIO.value

    def __init__(
        self,
        area_code: str = "555",
        inventory_size: int | None = None,
        simulate_delay: float = 0.0,
    ):
        """
        Args:
            area_code: Area code for generated US numbers
            inventory_size: Total numbers the carrier can ever offer, unlimited when None
            simulate_delay: Seconds each call sleeps
        """
        self.area_code = area_code
        self.inventory_size = inventory_size
        self.simulate_delay = simulate_delay
        self.owned: dict[str, OwnedNumber] = {}
        self.routing: dict[str, str] = {}
        self.calls: list[tuple[str, str | None]] = []
        self._counter = itertools.count(1)
        self._offered = 0
        self._failures: dict[str, set[str | None]] = {}

    def inject_failure(self, operation: str, match: str | None = None) -> None:
        """Fail an operation, optionally only for one argument value."""
        self._failures.setdefault(operation, set()).add(match)

    def count_calls(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    async def search_available_numbers(
        self, count: int, region: str | None = None
    ) -> list[AvailableNumber]:
        await self._enter("search_available_numbers", region)
        if self.inventory_size is not None:
            count = max(0, min(count, self.inventory_size - self._offered))
        self._offered += count
        return [
            AvailableNumber(
                phone_number=f"+1{self.area_code}0100{next(self._counter):03d}",
                region=region or "US",
            )
            for _ in range(count)
        ]

    async def purchase_numbers(
        self, candidates: list[AvailableNumber]
    ) -> list[OwnedNumber]:
        await self._enter("purchase_numbers", None)
        owned = []
        for candidate in candidates:
            number = OwnedNumber(
                carrier_id=f"PN{uuid.uuid4().hex}",
                phone_number=candidate.phone_number,
                status="active",
            )
            self.owned[number.carrier_id] = number
            owned.append(number)
        return owned

    async def release_number(self, carrier_id: str) -> None:
        await self._enter("release_number", carrier_id)
        if self.owned.pop(carrier_id, None) is None:
            raise TelephonyError(
                f"Phone number {carrier_id} not found",
                error_code=TelephonyErrorCode.NOT_FOUND,
            )

    async def assign_to_routing_app(self, carrier_id: str, app_id: str) -> None:
        await self._enter("assign_to_routing_app", carrier_id)
        self.routing[carrier_id] = app_id

    async def _enter(self, operation: str, argument: str | None) -> None:
        await asyncio.sleep(self.simulate_delay)
        self.calls.append((operation, argument))
        matches = self._failures.get(operation)
        if matches is not None and (None in matches or argument in matches):
            raise TelephonyError(
                f"Simulated {operation} failure",
                error_code=TelephonyErrorCode.HTTP_ERROR,
            )
