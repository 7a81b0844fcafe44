"""
Background worker.

Runs the provisioning retry sweep and number pool maintenance until
interrupted. Start with `python -m voicefleet.worker` or the
`voicefleet-worker` console script.
"""

import asyncio
import signal

from voicefleet.config import get_app_settings
from voicefleet.db.database import close_db, get_async_session_local
from voicefleet.jobs.number_pool_maintenance import NumberPoolMaintenanceJob
from voicefleet.jobs.provisioning_retry import ProvisioningRetryJob
from voicefleet.provisioning.service import create_provisioning_service
from voicefleet.utils.logger import logger


async def run_worker(stop_event: asyncio.Event | None = None) -> None:
    stop_event = stop_event or asyncio.Event()
    session_factory = get_async_session_local()
    service = create_provisioning_service(session_factory)

    jobs = [
        ProvisioningRetryJob(service),
        NumberPoolMaintenanceJob(session_factory, service.voice_ai),
    ]
    logger.info(
        "Starting worker",
        environment=get_app_settings().environment.value,
        jobs=[job.name for job in jobs],
    )
    try:
        await asyncio.gather(*(job.run_forever(stop_event) for job in jobs))
    finally:
        await close_db()


def main() -> None:
    async def _run() -> None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)
        await run_worker(stop_event)

    asyncio.run(_run())


if __name__ == "__main__":
    main()
