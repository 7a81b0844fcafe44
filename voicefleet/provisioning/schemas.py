"""
Pydantic schemas for provisioning results and plan entitlements.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ResourceQuota(BaseModel):
    """Resources a plan entitles a tenant to."""

    model_config = ConfigDict(frozen=True)

    number_count: int = Field(..., description="Phone numbers included in the plan")
    max_concurrent_sessions: int = Field(
        ..., description="Simultaneous calls the assistant may handle"
    )


class PlanFeatures(BaseModel):
    """Assistant capabilities tied to a plan."""

    model_config = ConfigDict(frozen=True)

    voice_cloning: bool = False
    custom_knowledge_base: bool = False
    max_minutes_per_call: int = 10


class TenantInfo(BaseModel):
    """Business details used to configure a new assistant."""

    business_name: str = ""
    business_description: str = ""
    greeting_name: str = "your AI assistant"


class FailureStage(str, Enum):
    """Step at which a single number failed."""

    ROUTING = "routing"
    IMPORT = "import"
    ASSIGN = "assign"
    PERSIST = "persist"
    RELEASE = "release"


class NumberFailure(BaseModel):
    """
    A number that could not be fully provisioned.

    When carrier_id is set the number is owned on the carrier account and
    can be adopted by a later provisioning pass instead of buying a new one.
    """

    phone_number: str | None = None
    carrier_id: str | None = None
    stage: FailureStage
    error: str

    @property
    def is_orphan(self) -> bool:
        return self.carrier_id is not None


class ProvisionedNumber(BaseModel):
    phone_number: str
    carrier_id: str | None = None
    voice_id: str | None = None
    phone_resource_id: int


class ProvisionResult(BaseModel):
    """Outcome of one provisioning pass."""

    requested: int
    provisioned: int = 0
    numbers: list[ProvisionedNumber] = Field(default_factory=list)
    failures: list[NumberFailure] = Field(default_factory=list)
    assistant_id: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.provisioned >= self.requested and not self.failures


class ReconcileAction(str, Enum):
    GROW = "grow"
    SHRINK = "shrink"
    NO_CHANGE = "no_change"


class ReleaseFailure(BaseModel):
    phone_resource_id: int
    phone_number: str
    error: str


class ReconcileResult(BaseModel):
    """Outcome of reconciling a tenant's numbers with a new plan."""

    action: ReconcileAction
    count_changed: int = 0
    old_quota: ResourceQuota
    new_quota: ResourceQuota
    provision_result: ProvisionResult | None = None
    failures: list[ReleaseFailure] = Field(default_factory=list)


class TeardownResult(BaseModel):
    """Outcome of cancelling a tenant."""

    numbers_released: int = 0
    assistant_deleted: bool = False
    failures: list[ReleaseFailure] = Field(default_factory=list)


class PoolStats(BaseModel):
    total: int = 0
    available: int = 0
    reserved: int = 0
    assigned: int = 0
    released: int = 0
    by_region: dict[str, dict[str, int]] = Field(default_factory=dict)
