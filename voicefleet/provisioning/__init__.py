"""
Provisioning and lifecycle reconciliation of tenant phone numbers.

Acquires, assigns and releases phone numbers across the telephony carrier
and the voice AI platform, keeping the local ledger consistent as a tenant's
plan changes or is cancelled.
"""

from voicefleet.provisioning.entitlements import get_plan_features, get_quota
from voicefleet.provisioning.exceptions import (
    CarrierReleaseError,
    InvalidExternalIdError,
    MissingCredentialsError,
    NoNumbersAvailableError,
    PoolExhausted,
    ProvisioningError,
)
from voicefleet.provisioning.schemas import (
    ProvisionResult,
    ReconcileResult,
    TeardownResult,
    TenantInfo,
)
from voicefleet.provisioning.service import (
    ProvisioningService,
    create_provisioning_service,
)

__all__ = [
    "CarrierReleaseError",
    "create_provisioning_service",
    "get_plan_features",
    "get_quota",
    "InvalidExternalIdError",
    "MissingCredentialsError",
    "NoNumbersAvailableError",
    "PoolExhausted",
    "ProvisioningError",
    "ProvisioningService",
    "ProvisionResult",
    "ReconcileResult",
    "TeardownResult",
    "TenantInfo",
]
