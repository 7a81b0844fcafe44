"""Tests for ProvisioningOrchestrator with the carrier number source."""

import pytest
from sqlalchemy.exc import OperationalError

from voicefleet.db.assistants.repository import AssistantRepository
from voicefleet.db.constants import AssistantStatus
from voicefleet.db.phone_numbers.repository import PhoneResourceRepository
from voicefleet.provisioning.entitlements import get_quota
from voicefleet.provisioning.exceptions import (
    InvalidExternalIdError,
    MissingCredentialsError,
    NoNumbersAvailableError,
)
from voicefleet.provisioning.orchestrator import ProvisioningOrchestrator
from voicefleet.provisioning.schemas import FailureStage, TenantInfo
from voicefleet.provisioning.sources import CarrierNumberSource
from voicefleet.telephony.providers.mock import MockTelephonyProvider
from voicefleet.telephony.schemas import OwnedNumber


def build_orchestrator(session, telephony, voice_ai, settings, credential_id=None):
    source = CarrierNumberSource(
        session,
        telephony,
        voice_ai,
        credential_id=credential_id,
        routing_app_id="AP-test",
        settings=settings,
    )
    return ProvisioningOrchestrator(session, voice_ai, source)


@pytest.mark.asyncio
async def test_provision_single_number_plan(
    session, telephony, voice_ai, settings, make_tenant
):
    """A one-number plan ends with one active number and one assistant."""
    tenant_id = await make_tenant("tenant-a", "starter")
    orchestrator = build_orchestrator(session, telephony, voice_ai, settings)

    result = await orchestrator.provision(
        tenant_id, "starter", TenantInfo(business_name="Acme Plumbing")
    )

    assert result.requested == 1
    assert result.provisioned == 1
    assert result.failures == []
    assert result.is_complete

    resources = await PhoneResourceRepository(session).list_active(tenant_id)
    assert len(resources) == 1
    assert resources[0].external_carrier_id in telephony.owned
    assert resources[0].external_voice_id in voice_ai.phone_numbers
    assert resources[0].assigned_assistant_id == result.assistant_id
    assert resources[0].label == "Phone 1"

    assistant = await AssistantRepository(session).get_active(tenant_id)
    assert assistant is not None
    assert assistant.external_voice_id == result.assistant_id
    assert voice_ai.count_calls("create_assistant") == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("plan_id", ["starter", "growth", "scale"])
async def test_failure_free_provision_matches_quota(
    session, telephony, voice_ai, settings, make_tenant, plan_id
):
    """After a clean pass the active count equals the plan's number count."""
    tenant_id = await make_tenant("tenant-q", plan_id)
    orchestrator = build_orchestrator(session, telephony, voice_ai, settings)

    result = await orchestrator.provision(tenant_id, plan_id)

    assert result.failures == []
    active = await PhoneResourceRepository(session).count_active(tenant_id)
    assert active == get_quota(plan_id).number_count


@pytest.mark.asyncio
async def test_import_failure_on_second_number(
    session, telephony, voice_ai, settings, make_tenant
):
    """One failed import does not abort the pass and leaves no row behind."""
    tenant_id = await make_tenant("tenant-d", "growth")
    voice_ai.inject_failure("import_phone_number", match="+15550100002")
    orchestrator = build_orchestrator(session, telephony, voice_ai, settings)

    result = await orchestrator.provision(tenant_id, "growth")

    assert result.requested == 2
    assert result.provisioned == 1
    assert len(result.failures) == 1

    failure = result.failures[0]
    assert failure.phone_number == "+15550100002"
    assert failure.stage == FailureStage.IMPORT
    assert "Simulated import_phone_number failure" in failure.error

    # The purchased number is kept so a later pass can adopt it
    assert failure.carrier_id in telephony.owned
    assert telephony.count_calls("release_number") == 0

    resources = await PhoneResourceRepository(session).list_active(tenant_id)
    assert [r.phone_number for r in resources] == ["+15550100001"]


@pytest.mark.asyncio
async def test_routing_failure_is_reported_per_number(
    session, telephony, voice_ai, settings, make_tenant
):
    tenant_id = await make_tenant("tenant-r", "growth")
    orchestrator = build_orchestrator(session, telephony, voice_ai, settings)
    carrier_id_of_first = None
    original_purchase = telephony.purchase_numbers

    async def purchase_and_break_routing(candidates):
        nonlocal carrier_id_of_first
        owned = await original_purchase(candidates)
        carrier_id_of_first = owned[0].carrier_id
        telephony.inject_failure("assign_to_routing_app", match=carrier_id_of_first)
        return owned

    telephony.purchase_numbers = purchase_and_break_routing

    result = await orchestrator.provision(tenant_id, "growth")

    assert result.provisioned == 1
    assert result.failures[0].stage == FailureStage.ROUTING
    assert result.failures[0].carrier_id == carrier_id_of_first
    assert voice_ai.count_calls("import_phone_number") == 1


@pytest.mark.asyncio
async def test_missing_credential_fails_before_any_purchase(
    session, telephony, voice_ai, settings, make_tenant
):
    """Pre-flight runs before the assistant is created or anything is bought."""
    tenant_id = await make_tenant("tenant-p", "starter")
    voice_ai.requires_carrier_credential = True
    orchestrator = build_orchestrator(session, telephony, voice_ai, settings)

    with pytest.raises(MissingCredentialsError):
        await orchestrator.provision(tenant_id, "starter")

    assert telephony.calls == []
    assert voice_ai.calls == []
    assert await PhoneResourceRepository(session).count_active(tenant_id) == 0


@pytest.mark.asyncio
async def test_credential_present_passes_preflight(
    session, telephony, voice_ai, settings, make_tenant
):
    tenant_id = await make_tenant("tenant-p2", "starter")
    voice_ai.requires_carrier_credential = True
    orchestrator = build_orchestrator(
        session, telephony, voice_ai, settings, credential_id="cred-123"
    )

    result = await orchestrator.provision(tenant_id, "starter")

    assert result.provisioned == 1


@pytest.mark.asyncio
async def test_no_candidates_raises(session, voice_ai, settings, make_tenant):
    """An empty carrier search is a hard failure with nothing purchased."""
    tenant_id = await make_tenant("tenant-z", "starter")
    telephony = MockTelephonyProvider(inventory_size=0)
    orchestrator = build_orchestrator(session, telephony, voice_ai, settings)

    with pytest.raises(NoNumbersAvailableError):
        await orchestrator.provision(tenant_id, "starter")

    assert telephony.count_calls("purchase_numbers") == 0
    assert telephony.owned == {}


@pytest.mark.asyncio
async def test_fewer_candidates_than_requested(session, voice_ai, settings, make_tenant):
    tenant_id = await make_tenant("tenant-few", "scale")
    telephony = MockTelephonyProvider(inventory_size=3)
    orchestrator = build_orchestrator(session, telephony, voice_ai, settings)

    result = await orchestrator.provision(tenant_id, "scale")

    assert result.requested == 5
    assert result.provisioned == 3
    assert not result.is_complete


@pytest.mark.asyncio
async def test_existing_assistant_is_reused(
    session, telephony, voice_ai, settings, make_tenant
):
    tenant_id = await make_tenant("tenant-reuse", "growth")
    orchestrator = build_orchestrator(session, telephony, voice_ai, settings)

    first = await orchestrator.provision(tenant_id, "growth", count=1)
    second = await orchestrator.provision(tenant_id, "growth", count=1)

    assert first.assistant_id == second.assistant_id
    assert voice_ai.count_calls("create_assistant") == 1
    resources = await PhoneResourceRepository(session).list_active(tenant_id)
    assert [r.label for r in resources] == ["Phone 1", "Phone 2"]


@pytest.mark.asyncio
async def test_malformed_stored_assistant_is_recreated(
    session, telephony, voice_ai, settings, make_tenant
):
    tenant_id = await make_tenant("tenant-bad", "starter")
    assistants = AssistantRepository(session)
    stale = await assistants.create(tenant_id=tenant_id, external_voice_id="asst_123")
    await session.commit()

    orchestrator = build_orchestrator(session, telephony, voice_ai, settings)
    result = await orchestrator.provision(tenant_id, "starter")

    assert result.assistant_id != "asst_123"
    assert stale.status == AssistantStatus.DELETED.value
    current = await assistants.get_active(tenant_id)
    assert current.external_voice_id == result.assistant_id


@pytest.mark.asyncio
async def test_malformed_new_assistant_id_raises(
    session, telephony, voice_ai, settings, make_tenant
):
    tenant_id = await make_tenant("tenant-bad-new", "starter")
    voice_ai.use_assistant_ids("bad")
    orchestrator = build_orchestrator(session, telephony, voice_ai, settings)

    with pytest.raises(InvalidExternalIdError):
        await orchestrator.provision(tenant_id, "starter")

    assert telephony.calls == []
    assert await AssistantRepository(session).get_active(tenant_id) is None


@pytest.mark.asyncio
async def test_adopted_numbers_are_imported_without_purchase(
    session, telephony, voice_ai, settings, make_tenant
):
    """Numbers left over from an earlier failed pass are imported, not re-bought."""
    tenant_id = await make_tenant("tenant-adopt", "growth")
    orphan = OwnedNumber(carrier_id="PN-orphan", phone_number="+15550199999")
    orchestrator = build_orchestrator(session, telephony, voice_ai, settings)

    result = await orchestrator.provision(tenant_id, "growth", count=1, adopt=[orphan])

    assert result.provisioned == 1
    assert result.numbers[0].carrier_id == "PN-orphan"
    assert telephony.count_calls("search_available_numbers") == 0
    assert telephony.count_calls("purchase_numbers") == 0
    assert ("import_phone_number", "+15550199999") in voice_ai.calls


@pytest.mark.asyncio
async def test_adopted_numbers_are_topped_up_with_purchases(
    session, telephony, voice_ai, settings, make_tenant
):
    tenant_id = await make_tenant("tenant-adopt-2", "growth")
    orphan = OwnedNumber(carrier_id="PN-orphan", phone_number="+15550199999")
    orchestrator = build_orchestrator(session, telephony, voice_ai, settings)

    result = await orchestrator.provision(tenant_id, "growth", adopt=[orphan])

    assert result.provisioned == 2
    assert telephony.count_calls("purchase_numbers") == 1
    assert len(telephony.owned) == 1


@pytest.mark.asyncio
async def test_database_error_before_persist_rolls_back(
    session, telephony, voice_ai, settings, make_tenant, monkeypatch
):
    """A failed label lookup rolls back so the next number gets a clean session."""
    tenant_id = await make_tenant("tenant-db", "growth")
    orchestrator = build_orchestrator(session, telephony, voice_ai, settings)
    repository = orchestrator.number_source.phone_repository
    count_active = repository.count_active
    lookups = 0

    async def flaky_count_active(tenant_id):
        nonlocal lookups
        lookups += 1
        if lookups == 1:
            raise OperationalError("SELECT count(*)", {}, Exception("database is locked"))
        return await count_active(tenant_id)

    monkeypatch.setattr(repository, "count_active", flaky_count_active)
    rollbacks = 0
    rollback = session.rollback

    async def counting_rollback():
        nonlocal rollbacks
        rollbacks += 1
        await rollback()

    monkeypatch.setattr(session, "rollback", counting_rollback)

    result = await orchestrator.provision(tenant_id, "growth")

    assert rollbacks == 1
    assert result.provisioned == 1
    assert [f.stage for f in result.failures] == [FailureStage.IMPORT]
    assert result.failures[0].carrier_id in telephony.owned
