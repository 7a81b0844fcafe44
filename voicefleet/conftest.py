"""Shared pytest fixtures: a file-backed SQLite ledger and in-memory providers."""

import itertools
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from voicefleet.config import ProvisioningSettings
from voicefleet.db.database import create_session_factory, init_db
from voicefleet.db.number_pool.model import PoolEntry
from voicefleet.db.tenants.repository import TenantRepository
from voicefleet.provisioning.pool import PoolAllocator
from voicefleet.provisioning.service import ProvisioningService
from voicefleet.telephony.providers.mock import MockTelephonyProvider
from voicefleet.voice_ai.providers.mock import MockVoiceAIProvider


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    """SQLite database on disk so separate sessions see each other's commits."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'voicefleet.db'}",
        connect_args={"timeout": 30},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def telephony():
    return MockTelephonyProvider()


@pytest.fixture
def voice_ai():
    return MockVoiceAIProvider()


@pytest.fixture
def settings():
    return ProvisioningSettings(
        pool_regions=["IE"],
        retry_max_attempts=5,
        retry_delays_seconds=[60, 300, 900, 3600, 7200],
        recycle_cooldown_hours=24,
        reservation_minutes=15,
    )


@pytest.fixture
def service(session_factory, telephony, voice_ai, settings):
    return ProvisioningService(
        session_factory=session_factory,
        telephony=telephony,
        voice_ai=voice_ai,
        settings=settings,
        routing_app_id="AP-test",
    )


@pytest.fixture
def make_tenant(session_factory):
    """Create a tenant row and return its id."""

    async def _make_tenant(
        tenant_id: str = "tenant-1", plan_id: str | None = "starter", region: str = "US"
    ) -> str:
        async with session_factory() as session:
            await TenantRepository(session).create(tenant_id, plan_id, region)
            await session.commit()
        return tenant_id

    return _make_tenant


@pytest.fixture
def stock_pool(session_factory, voice_ai, settings):
    """Add numbers to the pool and return the created entries."""
    serial = itertools.count(1)

    async def _stock_pool(count: int, region: str = "IE") -> list[PoolEntry]:
        entries = []
        async with session_factory() as session:
            allocator = PoolAllocator(session, voice_ai, settings=settings)
            for _ in range(count):
                entries.append(
                    await allocator.add_number(f"+35315550{next(serial):03d}", region)
                )
        return entries

    return _stock_pool
