"""Tests for TenantTeardown."""

import pytest

from voicefleet.db.assistants.repository import AssistantRepository
from voicefleet.db.constants import AssistantStatus, SubscriptionStatus
from voicefleet.db.phone_numbers.repository import PhoneResourceRepository
from voicefleet.db.tenants.repository import TenantRepository
from voicefleet.provisioning.orchestrator import ProvisioningOrchestrator
from voicefleet.provisioning.pool import PoolAllocator
from voicefleet.provisioning.release import ReleaseWorkflow
from voicefleet.provisioning.sources import CarrierNumberSource, PoolNumberSource
from voicefleet.provisioning.teardown import TenantTeardown
from voicefleet.voice_ai.base import VoiceAIError


@pytest.fixture
def orchestrator(session, telephony, voice_ai, settings):
    source = CarrierNumberSource(session, telephony, voice_ai, settings=settings)
    return ProvisioningOrchestrator(session, voice_ai, source)


@pytest.fixture
def teardown(session, voice_ai, settings, orchestrator):
    pool_source = PoolNumberSource(PoolAllocator(session, voice_ai, settings=settings))
    release_workflow = ReleaseWorkflow(
        session, [orchestrator.number_source, pool_source]
    )
    return TenantTeardown(session, voice_ai, release_workflow)


@pytest.mark.asyncio
async def test_cancel_tenant_releases_everything(
    session, telephony, voice_ai, orchestrator, teardown, make_tenant
):
    """Three numbers released and an already-deleted assistant tolerated."""
    tenant_id = await make_tenant("tenant-cancel", "scale")
    result = await orchestrator.provision(tenant_id, "scale", count=3)
    assert result.provisioned == 3
    voice_ai.assistants.clear()

    teardown_result = await teardown.cancel_tenant(tenant_id)

    assert teardown_result.numbers_released == 3
    assert teardown_result.assistant_deleted is True
    assert teardown_result.failures == []
    assert await PhoneResourceRepository(session).count_active(tenant_id) == 0
    assert telephony.owned == {}

    assert await AssistantRepository(session).get_active(tenant_id) is None
    assert voice_ai.count_calls("delete_assistant") == 1

    tenant = await TenantRepository(session).get(tenant_id)
    assert tenant.subscription_status == SubscriptionStatus.CANCELED.value


@pytest.mark.asyncio
async def test_cancel_tenant_continues_past_release_failures(
    session, telephony, voice_ai, orchestrator, teardown, make_tenant
):
    tenant_id = await make_tenant("tenant-cancel-fail", "growth")
    await orchestrator.provision(tenant_id, "growth")
    resources = await PhoneResourceRepository(session).list_active(tenant_id)
    voice_ai.inject_failure("delete_phone_number", match=resources[0].external_voice_id)

    result = await teardown.cancel_tenant(tenant_id)

    assert result.numbers_released == 1
    assert [f.phone_resource_id for f in result.failures] == [resources[0].id]
    assert await PhoneResourceRepository(session).count_active(tenant_id) == 1
    assert result.assistant_deleted is True


@pytest.mark.asyncio
async def test_cancel_tenant_is_repeatable(
    session, telephony, voice_ai, orchestrator, teardown, make_tenant
):
    tenant_id = await make_tenant("tenant-cancel-twice", "starter")
    await orchestrator.provision(tenant_id, "starter")

    await teardown.cancel_tenant(tenant_id)
    second = await teardown.cancel_tenant(tenant_id)

    assert second.numbers_released == 0
    assert second.assistant_deleted is False
    assert telephony.count_calls("release_number") == 1
    assert voice_ai.count_calls("delete_assistant") == 1


@pytest.mark.asyncio
async def test_assistant_delete_error_propagates(
    session, voice_ai, orchestrator, teardown, make_tenant
):
    tenant_id = await make_tenant("tenant-cancel-error", "starter")
    await orchestrator.provision(tenant_id, "starter")
    voice_ai.inject_failure("delete_assistant")

    with pytest.raises(VoiceAIError):
        await teardown.cancel_tenant(tenant_id)

    assistant = await AssistantRepository(session).get_active(tenant_id)
    assert assistant is not None
    assert assistant.status == AssistantStatus.ACTIVE.value
