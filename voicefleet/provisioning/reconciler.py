"""
Plan change reconciler.

Compares a tenant's active number count with the quota of its new plan and
grows or shrinks the tenant's numbers to match. Shrinking releases the most
recently created numbers first so the tenant keeps its longest-held numbers.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from voicefleet.db.assistants.repository import AssistantRepository
from voicefleet.db.phone_numbers.repository import PhoneResourceRepository
from voicefleet.db.tenants.repository import TenantRepository
from voicefleet.provisioning.entitlements import get_plan_features, get_quota
from voicefleet.provisioning.exceptions import CarrierReleaseError
from voicefleet.provisioning.orchestrator import ProvisioningOrchestrator
from voicefleet.provisioning.release import ReleaseWorkflow
from voicefleet.provisioning.schemas import (
    ReconcileAction,
    ReconcileResult,
    ReleaseFailure,
    TenantInfo,
)
from voicefleet.utils.logger import logger
from voicefleet.voice_ai.base import VoiceAIError


class PlanChangeReconciler:
    """Brings a tenant's phone numbers in line with its plan."""

    def __init__(
        self,
        session: AsyncSession,
        orchestrator: ProvisioningOrchestrator,
        release_workflow: ReleaseWorkflow,
    ):
        self.session = session
        self.orchestrator = orchestrator
        self.release_workflow = release_workflow
        self.phone_repository = PhoneResourceRepository(session)
        self.assistant_repository = AssistantRepository(session)
        self.tenant_repository = TenantRepository(session)

    async def reconcile(
        self,
        tenant_id: str,
        old_plan_id: str | None,
        new_plan_id: str | None,
        tenant_info: TenantInfo | None = None,
    ) -> ReconcileResult:
        """
        Reconcile a tenant's numbers after a plan change.

        The target is the new plan's quota compared with the tenant's actual
        active count, so a half-finished earlier change is corrected too.

        Args:
            tenant_id: Tenant whose plan changed
            old_plan_id: Previous plan
            new_plan_id: New plan
            tenant_info: Business details, used if an assistant must be created

        Returns:
            ReconcileResult: Action taken, numbers added or removed, and any
                per-number failures
        """
        old_quota = get_quota(old_plan_id)
        new_quota = get_quota(new_plan_id)

        await self._apply_plan_metadata(tenant_id, new_plan_id)

        current = await self.phone_repository.count_active(tenant_id)
        target = new_quota.number_count

        logger.info(
            "[Reconciler] Reconciling plan change",
            tenant_id=tenant_id,
            old_plan_id=old_plan_id,
            new_plan_id=new_plan_id,
            current=current,
            target=target,
        )

        if target > current:
            provision_result = await self.orchestrator.provision(
                tenant_id, new_plan_id, tenant_info, count=target - current
            )
            return ReconcileResult(
                action=ReconcileAction.GROW,
                count_changed=provision_result.provisioned,
                old_quota=old_quota,
                new_quota=new_quota,
                provision_result=provision_result,
            )

        if target < current:
            released, failures = await self._shrink(tenant_id, current - target)
            return ReconcileResult(
                action=ReconcileAction.SHRINK,
                count_changed=released,
                old_quota=old_quota,
                new_quota=new_quota,
                failures=failures,
            )

        return ReconcileResult(
            action=ReconcileAction.NO_CHANGE,
            old_quota=old_quota,
            new_quota=new_quota,
        )

    async def _shrink(
        self, tenant_id: str, delta: int
    ) -> tuple[int, list[ReleaseFailure]]:
        released = 0
        failures: list[ReleaseFailure] = []

        # Newest first
        for resource in await self.phone_repository.list_newest_active(tenant_id, delta):
            try:
                await self.release_workflow.release(resource)
                released += 1
            except CarrierReleaseError as e:
                # Row is released locally even though the carrier step failed
                released += 1
                failures.append(
                    ReleaseFailure(
                        phone_resource_id=resource.id,
                        phone_number=resource.phone_number,
                        error=e.message,
                    )
                )
            except VoiceAIError as e:
                failures.append(
                    ReleaseFailure(
                        phone_resource_id=resource.id,
                        phone_number=resource.phone_number,
                        error=e.message,
                    )
                )

        return released, failures

    async def _apply_plan_metadata(self, tenant_id: str, plan_id: str | None) -> None:
        features = get_plan_features(plan_id)
        assistant = await self.assistant_repository.get_active(tenant_id)
        if assistant is not None:
            await self.assistant_repository.update_features(
                assistant,
                voice_cloning_enabled=features.voice_cloning,
                custom_knowledge_base=features.custom_knowledge_base,
                max_minutes_per_call=features.max_minutes_per_call,
            )
        if plan_id is not None:
            await self.tenant_repository.set_plan(tenant_id, plan_id)
        await self.session.commit()
