"""
Provisioning retry job.

Sweeps the provisioning queue and re-runs failed provisioning passes.
"""

from voicefleet.config import ProvisioningSettings, get_provisioning_settings
from voicefleet.jobs.base import PeriodicJob
from voicefleet.provisioning.service import ProvisioningService
from voicefleet.utils.logger import logger


class ProvisioningRetryJob(PeriodicJob):
    name = "ProvisioningRetry"

    def __init__(
        self,
        service: ProvisioningService,
        settings: ProvisioningSettings | None = None,
    ):
        settings = settings or get_provisioning_settings()
        super().__init__(settings.retry_sweep_interval_seconds)
        self.service = service

    async def run_once(self) -> None:
        processed = await self.service.sweep_retries()
        if processed:
            logger.info(f"[{self.name}] Sweep finished", processed=processed)
