from voicefleet.db.assistants.model import AssistantResource
from voicefleet.db.assistants.repository import AssistantRepository

__all__ = ["AssistantResource", "AssistantRepository"]
