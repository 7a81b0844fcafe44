"""
Provisioning retry queue.

Failed provisioning passes are stored in the provisioning_queue table and
retried by a background sweep on a capped backoff schedule. Items that run
out of attempts stay failed for an operator to look at; they are never
deleted.
"""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from voicefleet.config import ProvisioningSettings, get_provisioning_settings
from voicefleet.db.constants import RetryStatus
from voicefleet.db.provisioning_queue.model import RetryQueueItem
from voicefleet.db.provisioning_queue.repository import RetryQueueRepository
from voicefleet.provisioning.schemas import ProvisionResult
from voicefleet.telephony.schemas import OwnedNumber
from voicefleet.utils.logger import logger

# Re-runs a queued provisioning pass: (item, adopted numbers) -> result
RetryProcessor = Callable[
    [RetryQueueItem, list[OwnedNumber]], Awaitable[ProvisionResult]
]


def compute_next_attempt_at(
    attempts: int,
    now: datetime | None = None,
    delays: list[int] | None = None,
) -> datetime:
    """
    Work out when an item should next be tried.

    The first failure (attempts=1) is retried right away. After the n-th
    attempt the delay is delays[n - 2], capped at the last entry.

    Args:
        attempts: Attempts made so far
        now: Reference time, defaults to the current time
        delays: Backoff schedule in seconds, defaults to the configured one

    Returns:
        datetime: Time of the next attempt
    """
    now = now or datetime.now(UTC)
    delays = delays or get_provisioning_settings().retry_delays_seconds
    if attempts <= 1 or not delays:
        return now
    return now + timedelta(seconds=delays[min(attempts - 2, len(delays) - 1)])


def serialize_orphans(numbers: list[OwnedNumber]) -> list[dict[str, Any]]:
    return [
        {"carrier_id": number.carrier_id, "phone_number": number.phone_number}
        for number in numbers
    ]


def orphans_from_result(result: ProvisionResult) -> list[OwnedNumber]:
    """Numbers the result reports as bought but not provisioned."""
    return [
        OwnedNumber(carrier_id=failure.carrier_id, phone_number=failure.phone_number)
        for failure in result.failures
        if failure.carrier_id and failure.phone_number
    ]


class RetryQueue:
    """Durable queue of provisioning passes to retry."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        processor: RetryProcessor | None = None,
        settings: ProvisioningSettings | None = None,
    ):
        """
        Args:
            session_factory: Factory for the sessions the queue reads and writes with
            processor: Callback that re-runs provisioning for an item; required
                for sweeping
            settings: Provisioning settings, defaults to the global instance
        """
        self.session_factory = session_factory
        self.processor = processor
        self.settings = settings or get_provisioning_settings()
        self._sweeping = False

    async def enqueue_failure(
        self,
        tenant_id: str,
        plan_id: str | None,
        requested_count: int,
        error: str,
        orphaned_numbers: list[OwnedNumber] | None = None,
    ) -> RetryQueueItem:
        """
        Record a failed provisioning pass for retry.

        The item starts pending with one attempt counted and is due immediately.
        """
        async with self.session_factory() as session:
            item = await RetryQueueRepository(session).create(
                tenant_id=tenant_id,
                plan_id=plan_id,
                requested_count=requested_count,
                last_error=error,
                next_attempt_at=compute_next_attempt_at(
                    1, delays=self.settings.retry_delays_seconds
                ),
                orphaned_numbers=serialize_orphans(orphaned_numbers or []),
            )
            await session.commit()

        logger.warning(
            "[RetryQueue] Provisioning queued for retry",
            tenant_id=tenant_id,
            requested_count=requested_count,
            orphaned=len(orphaned_numbers or []),
            error=error,
        )
        return item

    async def sweep(self, now: datetime | None = None) -> int:
        """
        Retry every due item once.

        A sweep that is already running makes this call return immediately.

        Args:
            now: Reference time for due items, defaults to the current time

        Returns:
            int: Number of items processed
        """
        if self.processor is None:
            raise RuntimeError("RetryQueue needs a processor to sweep")
        if self._sweeping:
            logger.info("[RetryQueue] Sweep already running, skipping")
            return 0

        self._sweeping = True
        try:
            now = now or datetime.now(UTC)
            async with self.session_factory() as session:
                items = await RetryQueueRepository(session).list_due(
                    now,
                    max_attempts=self.settings.retry_max_attempts,
                    limit=self.settings.retry_batch_size,
                )
                item_ids = [item.id for item in items]

            if item_ids:
                logger.info("[RetryQueue] Processing queue items", count=len(item_ids))
            for item_id in item_ids:
                await self._process(item_id)
            return len(item_ids)
        finally:
            self._sweeping = False

    async def list_for_tenant(self, tenant_id: str) -> list[RetryQueueItem]:
        async with self.session_factory() as session:
            return await RetryQueueRepository(session).list_for_tenant(tenant_id)

    async def _process(self, item_id: int) -> None:
        async with self.session_factory() as session:
            item = await RetryQueueRepository(session).get(item_id)
            if item is None:
                return

            adopt = [OwnedNumber(**number) for number in item.orphaned_numbers or []]
            logger.info(
                "[RetryQueue] Retrying provisioning",
                tenant_id=item.tenant_id,
                attempt=item.attempts + 1,
                requested_count=item.requested_count,
            )

            try:
                result = await self.processor(item, adopt)
            except Exception as e:
                logger.error(
                    "[RetryQueue] Retry attempt failed",
                    tenant_id=item.tenant_id,
                    error=str(e),
                    exc_info=True,
                )
                self._record_failure(item, str(e))
                await session.commit()
                return

            orphans = orphans_from_result(result)
            if result.provisioned >= result.requested and not orphans:
                item.status = RetryStatus.SUCCEEDED.value
                item.attempts += 1
                item.orphaned_numbers = []
                item.completed_at = datetime.now(UTC)
                logger.info(
                    "[RetryQueue] Provisioning retry succeeded",
                    tenant_id=item.tenant_id,
                )
            else:
                remaining = max(0, result.requested - result.provisioned)
                item.requested_count = remaining
                item.orphaned_numbers = serialize_orphans(orphans)
                if remaining:
                    error = (
                        f"Partial success: {result.provisioned} provisioned, "
                        f"{remaining} remaining"
                    )
                else:
                    error = (
                        f"{len(orphans)} orphaned numbers still owned on the carrier"
                    )
                self._record_failure(item, error, partial=True)
            await session.commit()

    def _record_failure(
        self, item: RetryQueueItem, error: str, partial: bool = False
    ) -> None:
        item.attempts += 1
        item.last_error = error

        if item.attempts >= self.settings.retry_max_attempts:
            item.status = RetryStatus.FAILED.value
            logger.error(
                "[RetryQueue] Provisioning permanently failed, needs manual attention",
                tenant_id=item.tenant_id,
                queue_item_id=item.id,
                attempts=item.attempts,
            )
            return

        item.status = RetryStatus.PENDING.value if partial else RetryStatus.FAILED.value
        item.next_attempt_at = compute_next_attempt_at(
            item.attempts, delays=self.settings.retry_delays_seconds
        )
        logger.info(
            "[RetryQueue] Provisioning retry scheduled",
            tenant_id=item.tenant_id,
            next_attempt_at=item.next_attempt_at.isoformat(),
        )
