"""
Repository for tenant assistant records.
"""

from datetime import UTC, datetime

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from voicefleet.db.assistants.model import AssistantResource
from voicefleet.db.constants import AssistantStatus
from voicefleet.utils.logger import logger


class AssistantRepository:
    """Repository for managing tenant assistants in the database."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active(self, tenant_id: str) -> AssistantResource | None:
        """
        Get the tenant's active assistant.

        Args:
            tenant_id: Tenant id

        Returns:
            AssistantResource | None: The newest active assistant, if any
        """
        stmt = (
            select(AssistantResource)
            .where(AssistantResource.tenant_id == tenant_id)
            .where(AssistantResource.status == AssistantStatus.ACTIVE.value)
            .order_by(desc(AssistantResource.created_at), desc(AssistantResource.id))
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(
        self,
        tenant_id: str,
        external_voice_id: str,
        voice_cloning_enabled: bool = False,
        custom_knowledge_base: bool = False,
        max_minutes_per_call: int = 10,
    ) -> AssistantResource:
        assistant = AssistantResource(
            tenant_id=tenant_id,
            external_voice_id=external_voice_id,
            status=AssistantStatus.ACTIVE.value,
            voice_cloning_enabled=voice_cloning_enabled,
            custom_knowledge_base=custom_knowledge_base,
            max_minutes_per_call=max_minutes_per_call,
        )
        self.session.add(assistant)
        await self.session.flush()
        await self.session.refresh(assistant)

        logger.info(
            "[AssistantRepository] Created assistant",
            id=assistant.id,
            tenant_id=tenant_id,
            external_voice_id=external_voice_id,
        )
        return assistant

    async def mark_deleted(self, assistant: AssistantResource) -> None:
        assistant.status = AssistantStatus.DELETED.value
        assistant.deleted_at = datetime.now(UTC)
        await self.session.flush()

    async def update_features(
        self,
        assistant: AssistantResource,
        voice_cloning_enabled: bool,
        custom_knowledge_base: bool,
        max_minutes_per_call: int,
    ) -> None:
        assistant.voice_cloning_enabled = voice_cloning_enabled
        assistant.custom_knowledge_base = custom_knowledge_base
        assistant.max_minutes_per_call = max_minutes_per_call
        await self.session.flush()
