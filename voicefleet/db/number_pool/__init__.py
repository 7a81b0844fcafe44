from voicefleet.db.number_pool.model import PoolAssignmentHistory, PoolEntry
from voicefleet.db.number_pool.repository import NumberPoolRepository

__all__ = ["PoolEntry", "PoolAssignmentHistory", "NumberPoolRepository"]
