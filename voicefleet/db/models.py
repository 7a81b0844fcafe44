"""
Import every SQLAlchemy model so they register on Base.metadata.
"""

from voicefleet.db.assistants.model import AssistantResource
from voicefleet.db.number_pool.model import PoolAssignmentHistory, PoolEntry
from voicefleet.db.phone_numbers.model import PhoneResource
from voicefleet.db.provisioning_queue.model import RetryQueueItem
from voicefleet.db.tenants.model import Tenant

__all__ = [
    "AssistantResource",
    "PhoneResource",
    "PoolAssignmentHistory",
    "PoolEntry",
    "RetryQueueItem",
    "Tenant",
]
