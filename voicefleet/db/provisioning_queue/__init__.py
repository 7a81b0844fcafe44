from voicefleet.db.provisioning_queue.model import RetryQueueItem
from voicefleet.db.provisioning_queue.repository import RetryQueueRepository

__all__ = ["RetryQueueItem", "RetryQueueRepository"]
