"""
Status enums shared by the provisioning ledger tables.
"""

from enum import Enum


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"


class AssistantStatus(str, Enum):
    ACTIVE = "active"
    DELETED = "deleted"


class PhoneResourceStatus(str, Enum):
    ACTIVE = "active"
    RELEASED = "released"


class PhoneSource(str, Enum):
    """How a tenant's number was acquired."""

    CARRIER = "carrier"
    POOL = "pool"


class PoolEntryStatus(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    ASSIGNED = "assigned"
    RELEASED = "released"


class PoolAction(str, Enum):
    """Actions recorded in the pool assignment history."""

    RESERVED = "reserved"
    ASSIGNED = "assigned"
    RELEASED = "released"
    CANCELLED = "cancelled"


class RetryStatus(str, Enum):
    PENDING = "pending"
    FAILED = "failed"
    SUCCEEDED = "succeeded"
