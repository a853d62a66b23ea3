import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ihostit.db.store import CatalogStore
from ihostit.sync.models import SyncOutcome
from ihostit.sync.service import SyncService
from ihostit.utils import utcnow

logger = logging.getLogger(__name__)

STARTUP_JOB_ID = "catalog-sync-startup"
CHECK_JOB_ID = "catalog-sync-check"
INTERRUPTED_RUN_MESSAGE = "Interrupted before completion"


class SyncScheduler:
    """Decides when the catalog should be synchronized.

    A sync runs at startup when the store is empty or stale, then an
    interval job re-checks staleness every ``check_interval``.
    """

    def __init__(
        self,
        sync_service: SyncService,
        store: CatalogStore,
        max_age: timedelta = timedelta(hours=24),
        check_interval: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.sync_service = sync_service
        self.store = store
        self.max_age = max_age
        self.check_interval = check_interval
        self.clock = clock
        self.scheduler = AsyncIOScheduler()

    def start(self):
        interrupted = self.store.fail_interrupted_sync_runs(INTERRUPTED_RUN_MESSAGE)
        if interrupted:
            logger.warning("Marked %s interrupted sync runs as failed", interrupted)

        self.scheduler.add_job(
            self.maybe_run_on_startup,
            id=STARTUP_JOB_ID,
            name="Catalog sync on startup",
            replace_existing=True,
        )
        self.scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=self.check_interval.total_seconds()),
            id=CHECK_JOB_ID,
            name="Catalog staleness check",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info("Catalog sync scheduler started, checking every %s", self.check_interval)

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Catalog sync scheduler stopped")

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def needs_initial_sync(self) -> bool:
        return self.store.count_categories() == 0 and self.store.count_apps() == 0

    def is_sync_due(self, now: Optional[datetime] = None) -> bool:
        last = self.store.get_latest_completed_sync_run()
        if last is None:
            return True
        now = now or self.clock()
        return now - last.started_at >= self.max_age

    def maybe_run_on_startup(self) -> Optional[SyncOutcome]:
        if self.needs_initial_sync():
            logger.info("Catalog store is empty, running initial sync")
        elif self.is_sync_due():
            logger.info("Catalog is stale, running sync on startup")
        else:
            logger.info("Catalog is up to date, skipping startup sync")
            return None
        return self._run("startup")

    def tick(self) -> Optional[SyncOutcome]:
        if self.sync_service.is_running:
            logger.info("Skipping scheduled sync - a sync is already running")
            return None
        if not self.is_sync_due():
            logger.debug("Skipping scheduled sync - recent sync found")
            return None
        return self._run("scheduled")

    def force_run(self, refresh_source: bool = False) -> SyncOutcome:
        logger.info("Manual sync triggered")
        if refresh_source:
            self.sync_service.fetcher.clear_cache()
        return self.sync_service.run()

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "sync_in_progress": self.sync_service.is_running,
            "last_sync": self.store.get_latest_sync_run(),
        }

    def _run(self, reason: str) -> SyncOutcome:
        outcome = self.sync_service.run()
        if outcome.success:
            logger.info("Catalog sync (%s) completed: %s", reason, outcome.message)
        else:
            logger.error("Catalog sync (%s) failed: %s", reason, outcome.message)
        return outcome
