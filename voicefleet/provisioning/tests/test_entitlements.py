"""Tests for plan entitlements."""

import pytest
from pydantic import ValidationError

from voicefleet.provisioning.entitlements import (
    DEFAULT_PLAN_ID,
    PLAN_QUOTAS,
    get_plan_features,
    get_quota,
    resolve_plan_id,
)


@pytest.mark.parametrize(
    "plan_id, number_count",
    [("starter", 1), ("growth", 2), ("scale", 5)],
)
def test_get_quota_known_plans(plan_id, number_count):
    """Each plan maps to its number count."""
    assert get_quota(plan_id).number_count == number_count


@pytest.mark.parametrize("plan_id", [None, "", "enterprise-legacy"])
def test_unknown_plan_falls_back_to_starter(plan_id):
    """Missing or unknown plan ids never fail the lookup."""
    assert resolve_plan_id(plan_id) == DEFAULT_PLAN_ID
    assert get_quota(plan_id) == PLAN_QUOTAS[DEFAULT_PLAN_ID]


def test_plan_ids_are_case_insensitive():
    assert get_quota("SCALE").number_count == 5


def test_features_follow_plan_tier():
    """Higher tiers unlock more assistant features."""
    starter = get_plan_features("starter")
    scale = get_plan_features("scale")

    assert starter.voice_cloning is False
    assert scale.voice_cloning is True
    assert scale.custom_knowledge_base is True
    assert scale.max_minutes_per_call > starter.max_minutes_per_call


def test_quota_is_immutable():
    quota = get_quota("growth")
    with pytest.raises(ValidationError):
        quota.number_count = 10
