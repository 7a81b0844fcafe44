"""
Per-tenant serialization.

Provisioning, reconciliation and teardown for one tenant must not overlap or
the tenant can end up over- or under-provisioned. Different tenants run
independently.
"""

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from voicefleet.utils.logger import logger


class TenantLockRegistry:
    """In-process asyncio locks keyed by tenant id."""

    def __init__(self) -> None:
        # Locks disappear once nobody holds or waits on them
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def lock_for(self, tenant_id: str) -> asyncio.Lock:
        lock = self._locks.get(tenant_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[tenant_id] = lock
        return lock

    def is_locked(self, tenant_id: str) -> bool:
        lock = self._locks.get(tenant_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, tenant_id: str) -> AsyncIterator[None]:
        """
        Hold the tenant's lock for the duration of the block.

        Example:
            ```python
            async with locks.hold(tenant_id):
                await orchestrator.provision(...)
            ```
        """
        lock = self.lock_for(tenant_id)
        if lock.locked():
            logger.debug("[TenantLock] Waiting for tenant lock", tenant_id=tenant_id)
        async with lock:
            yield
