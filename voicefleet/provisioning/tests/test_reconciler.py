"""Tests for PlanChangeReconciler."""

import pytest

from voicefleet.db.assistants.repository import AssistantRepository
from voicefleet.db.phone_numbers.repository import PhoneResourceRepository
from voicefleet.db.tenants.repository import TenantRepository
from voicefleet.provisioning.orchestrator import ProvisioningOrchestrator
from voicefleet.provisioning.pool import PoolAllocator
from voicefleet.provisioning.reconciler import PlanChangeReconciler
from voicefleet.provisioning.release import ReleaseWorkflow
from voicefleet.provisioning.schemas import ReconcileAction
from voicefleet.provisioning.sources import CarrierNumberSource, PoolNumberSource


@pytest.fixture
def orchestrator(session, telephony, voice_ai, settings):
    source = CarrierNumberSource(session, telephony, voice_ai, settings=settings)
    return ProvisioningOrchestrator(session, voice_ai, source)


@pytest.fixture
def reconciler(session, voice_ai, settings, orchestrator):
    pool_source = PoolNumberSource(PoolAllocator(session, voice_ai, settings=settings))
    release_workflow = ReleaseWorkflow(
        session, [orchestrator.number_source, pool_source]
    )
    return PlanChangeReconciler(session, orchestrator, release_workflow)


@pytest.mark.asyncio
async def test_upgrade_adds_one_number(
    session, telephony, orchestrator, reconciler, make_tenant
):
    tenant_id = await make_tenant("tenant-up", "starter")
    await orchestrator.provision(tenant_id, "starter")

    result = await reconciler.reconcile(tenant_id, "starter", "growth")

    assert result.action == ReconcileAction.GROW
    assert result.count_changed == 1
    assert result.old_quota.number_count == 1
    assert result.new_quota.number_count == 2
    assert result.provision_result.requested == 1
    assert await PhoneResourceRepository(session).count_active(tenant_id) == 2
    # A single provisioning pass for the whole delta
    assert telephony.count_calls("search_available_numbers") == 2


@pytest.mark.asyncio
async def test_downgrade_releases_newest_number(
    session, orchestrator, reconciler, make_tenant
):
    tenant_id = await make_tenant("tenant-down", "growth")
    await orchestrator.provision(tenant_id, "growth")
    repository = PhoneResourceRepository(session)
    older, newer = await repository.list_active(tenant_id)

    result = await reconciler.reconcile(tenant_id, "growth", "starter")

    assert result.action == ReconcileAction.SHRINK
    assert result.count_changed == 1
    assert result.failures == []

    remaining = await repository.list_active(tenant_id)
    assert [r.id for r in remaining] == [older.id]
    assert not newer.is_active
    assert remaining[0].created_at <= newer.created_at


@pytest.mark.asyncio
async def test_upgrade_then_downgrade_restores_count(
    session, orchestrator, reconciler, make_tenant
):
    tenant_id = await make_tenant("tenant-roundtrip", "growth")
    await orchestrator.provision(tenant_id, "growth")

    await reconciler.reconcile(tenant_id, "growth", "scale")
    assert await PhoneResourceRepository(session).count_active(tenant_id) == 5

    await reconciler.reconcile(tenant_id, "scale", "growth")
    assert await PhoneResourceRepository(session).count_active(tenant_id) == 2


@pytest.mark.asyncio
async def test_same_count_is_no_change(
    session, telephony, orchestrator, reconciler, make_tenant
):
    tenant_id = await make_tenant("tenant-same", "starter")
    await orchestrator.provision(tenant_id, "starter")
    calls_before = len(telephony.calls)

    result = await reconciler.reconcile(tenant_id, "starter", "starter")

    assert result.action == ReconcileAction.NO_CHANGE
    assert result.count_changed == 0
    assert len(telephony.calls) == calls_before


@pytest.mark.asyncio
async def test_target_uses_actual_count_not_old_plan(
    session, orchestrator, reconciler, make_tenant
):
    """A tenant short of its old quota is topped up to the new one."""
    tenant_id = await make_tenant("tenant-short", "growth")
    await orchestrator.provision(tenant_id, "growth", count=1)

    result = await reconciler.reconcile(tenant_id, "growth", "scale")

    assert result.count_changed == 4
    assert await PhoneResourceRepository(session).count_active(tenant_id) == 5


@pytest.mark.asyncio
async def test_plan_metadata_is_applied(session, orchestrator, reconciler, make_tenant):
    tenant_id = await make_tenant("tenant-features", "starter")
    await orchestrator.provision(tenant_id, "starter")

    await reconciler.reconcile(tenant_id, "starter", "scale")

    assistant = await AssistantRepository(session).get_active(tenant_id)
    assert assistant.voice_cloning_enabled is True
    assert assistant.custom_knowledge_base is True
    assert assistant.max_minutes_per_call == 30
    tenant = await TenantRepository(session).get(tenant_id)
    assert tenant.plan_id == "scale"


@pytest.mark.asyncio
async def test_shrink_continues_past_carrier_failure(
    session, telephony, orchestrator, reconciler, make_tenant
):
    """A carrier release failure is reported but the row still counts as released."""
    tenant_id = await make_tenant("tenant-shrink-fail", "scale")
    await orchestrator.provision(tenant_id, "scale")
    telephony.inject_failure("release_number")

    result = await reconciler.reconcile(tenant_id, "scale", "starter")

    assert result.action == ReconcileAction.SHRINK
    assert result.count_changed == 4
    assert len(result.failures) == 4
    assert await PhoneResourceRepository(session).count_active(tenant_id) == 1


@pytest.mark.asyncio
async def test_shrink_voice_failure_keeps_number(
    session, voice_ai, orchestrator, reconciler, make_tenant
):
    tenant_id = await make_tenant("tenant-shrink-voice", "growth")
    await orchestrator.provision(tenant_id, "growth")
    voice_ai.inject_failure("delete_phone_number")

    result = await reconciler.reconcile(tenant_id, "growth", "starter")

    assert result.count_changed == 0
    assert len(result.failures) == 1
    assert await PhoneResourceRepository(session).count_active(tenant_id) == 2
