"""
Plan entitlements.

Maps a plan id to the resources and assistant features it includes. Unknown
plan ids resolve to the starter plan so the lookup never fails.
"""

from voicefleet.provisioning.schemas import PlanFeatures, ResourceQuota

DEFAULT_PLAN_ID = "starter"

PLAN_QUOTAS: dict[str, ResourceQuota] = {
    "starter": ResourceQuota(number_count=1, max_concurrent_sessions=1),
    "growth": ResourceQuota(number_count=2, max_concurrent_sessions=3),
    "scale": ResourceQuota(number_count=5, max_concurrent_sessions=10),
}

PLAN_FEATURES: dict[str, PlanFeatures] = {
    "starter": PlanFeatures(
        voice_cloning=False, custom_knowledge_base=False, max_minutes_per_call=10
    ),
    "growth": PlanFeatures(
        voice_cloning=True, custom_knowledge_base=False, max_minutes_per_call=15
    ),
    "scale": PlanFeatures(
        voice_cloning=True, custom_knowledge_base=True, max_minutes_per_call=30
    ),
}


def resolve_plan_id(plan_id: str | None) -> str:
    if plan_id and plan_id.lower() in PLAN_QUOTAS:
        return plan_id.lower()
    return DEFAULT_PLAN_ID


def get_quota(plan_id: str | None) -> ResourceQuota:
    """
    Get the resource quota for a plan.

    Args:
        plan_id: Plan identifier, may be None or unknown

    Returns:
        ResourceQuota: The plan's quota, or the starter quota
    """
    return PLAN_QUOTAS[resolve_plan_id(plan_id)]


def get_plan_features(plan_id: str | None) -> PlanFeatures:
    return PLAN_FEATURES[resolve_plan_id(plan_id)]
