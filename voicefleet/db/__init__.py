"""Database layer for the provisioning ledger (PostgreSQL via SQLAlchemy async)."""

from voicefleet.db.assistants import AssistantRepository, AssistantResource
from voicefleet.db.config import DatabaseSettings, get_db_settings
from voicefleet.db.database import Base, get_async_session_local, session_scope
from voicefleet.db.number_pool import NumberPoolRepository, PoolEntry
from voicefleet.db.phone_numbers import PhoneResource, PhoneResourceRepository
from voicefleet.db.provisioning_queue import RetryQueueItem, RetryQueueRepository
from voicefleet.db.tenants import Tenant, TenantRepository

__all__ = [
    "AssistantRepository",
    "AssistantResource",
    "Base",
    "DatabaseSettings",
    "get_async_session_local",
    "get_db_settings",
    "NumberPoolRepository",
    "PhoneResource",
    "PhoneResourceRepository",
    "PoolEntry",
    "RetryQueueItem",
    "RetryQueueRepository",
    "session_scope",
    "Tenant",
    "TenantRepository",
]
