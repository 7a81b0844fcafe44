"""Tests for ProvisioningService: locking, retry enqueueing and source selection."""

import asyncio

import pytest

from voicefleet.db.constants import PhoneSource, RetryStatus
from voicefleet.db.phone_numbers.repository import PhoneResourceRepository
from voicefleet.db.tenants.repository import TenantRepository
from voicefleet.provisioning.exceptions import (
    MissingCredentialsError,
    NoNumbersAvailableError,
    PoolExhausted,
)
from voicefleet.provisioning.schemas import ReconcileAction
from voicefleet.provisioning.service import ProvisioningService
from voicefleet.telephony.providers.mock import MockTelephonyProvider
from voicefleet.voice_ai.providers.mock import MockVoiceAIProvider


async def active_resources(session_factory, tenant_id):
    async with session_factory() as session:
        return await PhoneResourceRepository(session).list_active(tenant_id)


@pytest.mark.asyncio
async def test_concurrent_calls_for_one_tenant_are_serialized(
    session_factory, telephony, settings, make_tenant
):
    """The second call waits and then reuses the assistant the first one made."""
    tenant_id = await make_tenant("tenant-lock", "starter")
    voice_ai = MockVoiceAIProvider(simulate_delay=0.01)
    service = ProvisioningService(
        session_factory, telephony, voice_ai, settings=settings
    )

    first, second = await asyncio.gather(
        service.provision(tenant_id, "starter"),
        service.reconcile(tenant_id, "starter", "growth"),
    )

    assert first.provisioned == 1
    assert second.action == ReconcileAction.GROW
    assert second.count_changed == 1
    assert voice_ai.count_calls("create_assistant") == 1
    assert len(await active_resources(session_factory, tenant_id)) == 2
    assert not service.locks.is_locked(tenant_id)


@pytest.mark.asyncio
async def test_partial_provision_is_queued_with_orphans(
    service, session_factory, voice_ai, telephony, make_tenant
):
    tenant_id = await make_tenant("tenant-partial", "growth")
    voice_ai.inject_failure("import_phone_number", match="+15550100002", times=1)

    result = await service.provision(tenant_id, "growth")

    assert result.provisioned == 1
    [item] = await service.retry_queue.list_for_tenant(tenant_id)
    assert item.status == RetryStatus.PENDING.value
    assert item.requested_count == 1
    assert item.orphaned_numbers == [
        {
            "carrier_id": result.failures[0].carrier_id,
            "phone_number": "+15550100002",
        }
    ]

    # The retry imports the orphan instead of buying another number
    assert await service.sweep_retries() == 1

    [item] = await service.retry_queue.list_for_tenant(tenant_id)
    assert item.status == RetryStatus.SUCCEEDED.value
    assert telephony.count_calls("purchase_numbers") == 1
    resources = await active_resources(session_factory, tenant_id)
    assert sorted(r.phone_number for r in resources) == [
        "+15550100001",
        "+15550100002",
    ]


@pytest.mark.asyncio
async def test_no_numbers_available_is_queued_and_raised(
    session_factory, voice_ai, settings, make_tenant
):
    tenant_id = await make_tenant("tenant-empty", "growth")
    service = ProvisioningService(
        session_factory,
        MockTelephonyProvider(inventory_size=0),
        voice_ai,
        settings=settings,
    )

    with pytest.raises(NoNumbersAvailableError):
        await service.provision(tenant_id, "growth")

    [item] = await service.retry_queue.list_for_tenant(tenant_id)
    assert item.requested_count == 2
    assert item.last_error == "No phone numbers available"


@pytest.mark.asyncio
async def test_missing_credentials_is_not_queued(service, voice_ai, make_tenant):
    tenant_id = await make_tenant("tenant-creds", "starter")
    voice_ai.requires_carrier_credential = True

    with pytest.raises(MissingCredentialsError):
        await service.provision(tenant_id, "starter")

    assert await service.retry_queue.list_for_tenant(tenant_id) == []


@pytest.mark.asyncio
async def test_retry_is_capped_at_remaining_quota(
    service, session_factory, telephony, make_tenant
):
    """A plan change that already filled the quota turns the retry into a no-op."""
    tenant_id = await make_tenant("tenant-capped", "starter")
    await service.provision(tenant_id, "starter")
    await service.retry_queue.enqueue_failure(tenant_id, "starter", 1, "stale failure")
    purchases_before = telephony.count_calls("purchase_numbers")

    assert await service.sweep_retries() == 1

    [item] = await service.retry_queue.list_for_tenant(tenant_id)
    assert item.status == RetryStatus.SUCCEEDED.value
    assert telephony.count_calls("purchase_numbers") == purchases_before
    assert len(await active_resources(session_factory, tenant_id)) == 1


@pytest.mark.asyncio
async def test_pool_region_tenant_is_served_from_pool(
    service, session_factory, telephony, make_tenant, stock_pool
):
    tenant_id = await make_tenant("tenant-ie", "growth", region="IE")
    await stock_pool(2)

    result = await service.provision(tenant_id, "growth")

    assert result.provisioned == 2
    assert telephony.calls == []
    resources = await active_resources(session_factory, tenant_id)
    assert {r.source for r in resources} == {PhoneSource.POOL.value}


@pytest.mark.asyncio
async def test_pool_exhausted_propagates_without_queueing(
    service, make_tenant, stock_pool
):
    tenant_id = await make_tenant("tenant-ie-empty", "growth", region="IE")
    await stock_pool(1)

    with pytest.raises(PoolExhausted):
        await service.provision(tenant_id, "growth")

    assert await service.retry_queue.list_for_tenant(tenant_id) == []


@pytest.mark.asyncio
async def test_cancel_pool_tenant_returns_numbers(
    service, session_factory, make_tenant, stock_pool
):
    tenant_id = await make_tenant("tenant-ie-cancel", "starter", region="IE")
    await stock_pool(1)
    await service.provision(tenant_id, "starter")

    result = await service.cancel_tenant(tenant_id)

    assert result.numbers_released == 1
    assert await active_resources(session_factory, tenant_id) == []


async def set_plan(session_factory, tenant_id, plan_id):
    async with session_factory() as session:
        await TenantRepository(session).set_plan(tenant_id, plan_id)
        await session.commit()


@pytest.mark.asyncio
async def test_retry_after_downgrade_respects_new_quota(
    service, session_factory, voice_ai, telephony, make_tenant
):
    """A downgrade between failure and retry releases the orphan instead."""
    tenant_id = await make_tenant("tenant-downgrade", "growth")
    voice_ai.inject_failure("import_phone_number", match="+15550100002", times=1)
    result = await service.provision(tenant_id, "growth")
    orphan_id = result.failures[0].carrier_id

    reconciled = await service.reconcile(tenant_id, "growth", "starter")
    assert reconciled.action == ReconcileAction.NO_CHANGE

    assert await service.sweep_retries() == 1

    resources = await active_resources(session_factory, tenant_id)
    assert [r.phone_number for r in resources] == ["+15550100001"]
    assert orphan_id not in telephony.owned
    assert telephony.count_calls("release_number") == 1
    [item] = await service.retry_queue.list_for_tenant(tenant_id)
    assert item.status == RetryStatus.SUCCEEDED.value
    assert item.orphaned_numbers == []


@pytest.mark.asyncio
async def test_retry_releases_orphans_beyond_remaining_quota(
    service, session_factory, voice_ai, telephony, make_tenant
):
    tenant_id = await make_tenant("tenant-surplus", "growth")
    voice_ai.inject_failure("import_phone_number", match="+15550100001", times=1)
    voice_ai.inject_failure("import_phone_number", match="+15550100002", times=1)
    result = await service.provision(tenant_id, "growth")
    assert result.provisioned == 0
    surplus_id = result.failures[1].carrier_id
    await set_plan(session_factory, tenant_id, "starter")

    assert await service.sweep_retries() == 1

    resources = await active_resources(session_factory, tenant_id)
    assert [r.phone_number for r in resources] == ["+15550100001"]
    assert surplus_id not in telephony.owned
    assert telephony.count_calls("purchase_numbers") == 1
    [item] = await service.retry_queue.list_for_tenant(tenant_id)
    assert item.status == RetryStatus.SUCCEEDED.value


@pytest.mark.asyncio
async def test_orphan_that_fails_to_release_stays_queued(
    service, session_factory, voice_ai, telephony, make_tenant
):
    tenant_id = await make_tenant("tenant-stuck-orphan", "growth")
    voice_ai.inject_failure("import_phone_number", match="+15550100002", times=1)
    result = await service.provision(tenant_id, "growth")
    orphan_id = result.failures[0].carrier_id
    await set_plan(session_factory, tenant_id, "starter")
    telephony.inject_failure("release_number", match=orphan_id)

    assert await service.sweep_retries() == 1

    assert orphan_id in telephony.owned
    assert len(await active_resources(session_factory, tenant_id)) == 1
    [item] = await service.retry_queue.list_for_tenant(tenant_id)
    assert item.status == RetryStatus.PENDING.value
    assert item.requested_count == 0
    assert item.orphaned_numbers == [
        {"carrier_id": orphan_id, "phone_number": "+15550100002"}
    ]
    assert "orphaned numbers still owned" in item.last_error
