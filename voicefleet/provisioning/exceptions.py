"""Custom exceptions for the provisioning package."""


class ProvisioningError(Exception):
    """Base exception for all provisioning errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingCredentialsError(ProvisioningError):
    """Raised by pre-flight checks before anything is purchased."""

    pass


class NoNumbersAvailableError(ProvisioningError):
    """Raised when the carrier search returns no candidates."""

    pass


class InvalidExternalIdError(ProvisioningError):
    """Raised when the voice AI platform returns a malformed id."""

    pass


class PoolExhausted(ProvisioningError):
    """Raised when no pool entry is available in a region."""

    def __init__(self, region: str) -> None:
        super().__init__(f"No available phone numbers in {region} region")
        self.region = region


class CarrierReleaseError(ProvisioningError):
    """
    Raised when the carrier release fails after the voice AI number was removed.

    The local record is already marked released; the carrier-side number needs
    to be reconciled against the carrier's billing records.
    """

    def __init__(self, message: str, carrier_id: str | None) -> None:
        super().__init__(message)
        self.carrier_id = carrier_id
