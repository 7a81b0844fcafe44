from voicefleet.db.tenants.model import Tenant
from voicefleet.db.tenants.repository import TenantRepository

__all__ = ["Tenant", "TenantRepository"]
