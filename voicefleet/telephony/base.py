"""
Abstract base classes for telephony carriers.

This module defines the interface the provisioning core uses to search,
purchase, route and release phone numbers on a carrier account.
"""

from abc import ABC, abstractmethod

from voicefleet.telephony.constants import TelephonyErrorCode
from voicefleet.telephony.schemas import AvailableNumber, OwnedNumber


class TelephonyProvider(ABC):
    """Abstract interface for telephony carriers."""

    # Carrier name as understood by the voice AI platform when importing
    carrier_name: str

    @abstractmethod
    async def search_available_numbers(
        self, count: int, region: str | None = None
    ) -> list[AvailableNumber]:
        """
        Search for numbers available to purchase.

        Args:
            count: Maximum number of candidates to return
            region: ISO country code, defaults to the configured region

        Returns:
            list[AvailableNumber]: Candidates, possibly fewer than requested

        Raises:
            TelephonyError: If the search fails
        """
        pass

    @abstractmethod
    async def purchase_numbers(
        self, candidates: list[AvailableNumber]
    ) -> list[OwnedNumber]:
        """
        Purchase candidate numbers.

        Each purchase is atomic on the carrier side. Numbers bought before a
        failure stay owned.

        Raises:
            TelephonyError: If purchasing fails
        """
        pass

    @abstractmethod
    async def release_number(self, carrier_id: str) -> None:
        """
        Release an owned number back to the carrier.

        Raises:
            TelephonyError: With NOT_FOUND if the number is already released
        """
        pass

    async def assign_to_routing_app(self, carrier_id: str, app_id: str) -> None:
        """Point an owned number at a voice routing application. Optional."""
        return None


class TelephonyError(Exception):
    """Base exception for telephony carrier errors."""

    def __init__(self, message: str, error_code: TelephonyErrorCode | None = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    @property
    def is_not_found(self) -> bool:
        return self.error_code == TelephonyErrorCode.NOT_FOUND
