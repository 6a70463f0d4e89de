"""Scheduler for recompute triggers: the daily rollover and snapshot changes."""

import logging
from collections.abc import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from src.core.clock import Clock, SystemClock
from src.core.config import settings
from src.core.kv_store import KeyValueStore
from src.core.logging import configure_logfire
from src.domain.partner import EventSnapshot
from src.interface.delivery_sink import DeliverySink
from src.models.service_models import RecomputeResult, RecomputeStatus
from src.services import engine_service


logger = logging.getLogger(__name__)

SnapshotProvider = Callable[[], Awaitable[EventSnapshot]]

DAILY_ROLLOVER_JOB_ID = "daily_rollover"
SNAPSHOT_CHANGED_JOB_ID = "snapshot_changed"

# Global scheduler instance
scheduler = AsyncIOScheduler()


class _EngineBinding:
    """What a triggered recompute runs against."""

    def __init__(
        self,
        store: KeyValueStore,
        snapshot_provider: SnapshotProvider,
        clock: Clock,
        sink: DeliverySink | None,
    ) -> None:
        self.store = store
        self.snapshot_provider = snapshot_provider
        self.clock = clock
        self.sink = sink


_binding: _EngineBinding | None = None


async def run_recompute(reason: str) -> RecomputeResult | None:
    """Fetch the current snapshot and run one recompute cycle.

    Args:
        reason: What triggered the run (for logs)

    Returns:
        The recompute result, or None if the scheduler was never started
    """
    if _binding is None:
        logger.warning("Recompute requested (%s) before the scheduler was started", reason)
        return None

    logger.info("Running recompute job: %s", reason)
    snapshot = await _binding.snapshot_provider()
    result = await engine_service.recompute(_binding.store, snapshot, _binding.clock, _binding.sink)

    if result.status == RecomputeStatus.STATE_UNAVAILABLE:
        logger.warning("Recompute job %s could not reach the state store", reason)
    return result


async def daily_rollover() -> None:
    """Daily job: roll challenges, prune notifications, refresh deadline warnings."""
    await run_recompute(DAILY_ROLLOVER_JOB_ID)


async def _snapshot_changed() -> None:
    await run_recompute(SNAPSHOT_CHANGED_JOB_ID)


def notify_snapshot_changed() -> None:
    """Change-notification callback: schedule an immediate recompute.

    Several calls before the job runs collapse into one run.
    """
    if not scheduler.running:
        logger.warning("Snapshot change ignored, scheduler is not running")
        return

    scheduler.add_job(
        _snapshot_changed,
        id=SNAPSHOT_CHANGED_JOB_ID,
        name="Recompute After Snapshot Change",
        replace_existing=True,
    )


def start_scheduler(
    store: KeyValueStore,
    snapshot_provider: SnapshotProvider,
    *,
    clock: Clock | None = None,
    sink: DeliverySink | None = None,
) -> None:
    """Bind the engine to its collaborators, register the daily job and start the scheduler."""
    global _binding

    configure_logfire()
    logger.info("Starting scheduler")
    clock = clock or SystemClock()
    _binding = _EngineBinding(store, snapshot_provider, clock, sink)

    scheduler.add_job(
        daily_rollover,
        trigger=CronTrigger(
            hour=settings.daily_rollover_hour,
            minute=settings.daily_rollover_minute,
            timezone=clock.tz,
        ),
        id=DAILY_ROLLOVER_JOB_ID,
        name="Daily Challenge Rollover",
        replace_existing=True,
    )
    logger.info(
        "Scheduled daily rollover job: daily at %02d:%02d",
        settings.daily_rollover_hour,
        settings.daily_rollover_minute,
    )

    scheduler.start()
    logger.info("Scheduler started successfully")


def stop_scheduler() -> None:
    """Stop the scheduler and forget the engine binding."""
    global _binding

    logger.info("Stopping scheduler")
    scheduler.shutdown(wait=True)
    _binding = None
    logger.info("Scheduler stopped")
