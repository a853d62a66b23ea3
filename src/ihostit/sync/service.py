import logging
import threading
from typing import Callable, List, Optional

from ihostit.catalog.models import ParsedCategory
from ihostit.catalog.parser import parse_catalog
from ihostit.catalog.source import FetchError, SourceFetcher
from ihostit.db.models.catalog import SyncRun, SyncStatus
from ihostit.db.store import CatalogStore
from ihostit.sync.models import ReplaceTally, SyncOutcome

logger = logging.getLogger(__name__)


class SyncService:
    """Replaces the stored catalog with a freshly fetched and parsed copy.

    Only one run may be active at a time. A trigger that arrives while a
    run holds the lock returns immediately with ``skipped=True``.
    """

    def __init__(
        self,
        store: CatalogStore,
        fetcher: SourceFetcher,
        parser: Callable[[str], List[ParsedCategory]] = parse_catalog,
    ):
        self.store = store
        self.fetcher = fetcher
        self.parser = parser
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def run(self) -> SyncOutcome:
        if not self._lock.acquire(blocking=False):
            logger.info("Sync already in progress, ignoring trigger")
            return SyncOutcome(success=True, message="Sync already in progress", skipped=True)
        try:
            return self._run()
        finally:
            self._lock.release()

    def _run(self) -> SyncOutcome:
        run: Optional[SyncRun] = None
        cleared = False
        try:
            logger.info("Starting catalog synchronization")
            run = self.store.create_sync_run(SyncStatus.IN_PROGRESS)

            try:
                document = self.fetcher.fetch()
            except FetchError as exc:
                return self._fail(run, str(exc))
            # An unusable document must not be served from cache on the next attempt
            if not document or not document.strip():
                self.fetcher.clear_cache()
                return self._fail(run, "No data received from upstream source")

            categories = self.parser(document)
            if not categories:
                self.fetcher.clear_cache()
                return self._fail(run, "No categories found in upstream document")

            self.store.clear_catalog()
            cleared = True
            tally = self._replace_catalog(categories)

            total_apps = self.store.count_apps()
            total_categories = self.store.count_categories()
            if (total_apps, total_categories) != (tally.stored_apps, tally.stored_categories):
                logger.warning(
                    "Store counts (%s apps, %s categories) differ from stored tally (%s apps, %s categories)",
                    total_apps,
                    total_categories,
                    tally.stored_apps,
                    tally.stored_categories,
                )

            message = f"Successfully synced {total_apps} apps across {total_categories} categories"
            self.store.finish_sync_run(
                run.id,
                SyncStatus.COMPLETED,
                total_apps=total_apps,
                total_categories=total_categories,
                message=message,
            )
            logger.info(
                "%s (%s apps and %s categories skipped)",
                message,
                tally.skipped_apps,
                tally.skipped_categories,
            )
            return SyncOutcome(
                success=True,
                message=message,
                counted_apps=total_apps,
                counted_categories=total_categories,
                skipped_apps=tally.skipped_apps,
                skipped_categories=tally.skipped_categories,
                sync_run_id=run.id,
            )
        except Exception as exc:
            logger.exception("Synchronization failed")
            message = f"Synchronization failed: {exc}"
            if run is not None:
                self._mark_failed(run.id, message, cleared)
            return SyncOutcome(
                success=False,
                message=message,
                sync_run_id=run.id if run is not None else None,
            )

    def _replace_catalog(self, categories: List[ParsedCategory]) -> ReplaceTally:
        tally = ReplaceTally()
        for parsed in categories:
            try:
                category = self.store.create_category(parsed.name, parsed.description)
            except Exception as exc:
                logger.error("Error creating category %s: %s", parsed.name, exc)
                tally.skipped_categories += 1
                tally.skipped_apps += len(parsed.apps)
                continue
            tally.stored_categories += 1

            for app in parsed.apps:
                try:
                    self.store.create_app(
                        category_id=category.id,
                        name=app.name,
                        homepage_url=app.homepage_url,
                        description=app.description or None,
                        source_code_url=app.source_code_url,
                        demo_url=app.demo_url,
                        license=app.license,
                        language=app.language,
                        subcategory=app.subcategory,
                    )
                except Exception as exc:
                    logger.error("Error creating app %s: %s", app.name, exc)
                    tally.skipped_apps += 1
                    continue
                tally.stored_apps += 1
            logger.debug("Created category %s with %s apps", category.name, len(parsed.apps))
        return tally

    def _fail(self, run: SyncRun, message: str) -> SyncOutcome:
        logger.error("Synchronization failed: %s", message)
        self.store.finish_sync_run(run.id, SyncStatus.FAILED, message=message)
        return SyncOutcome(success=False, message=message, sync_run_id=run.id)

    def _mark_failed(self, run_id: int, message: str, cleared: bool):
        try:
            totals = {}
            if cleared:
                # Record whatever made it into the store before the failure
                totals = {
                    "total_apps": self.store.count_apps(),
                    "total_categories": self.store.count_categories(),
                }
            self.store.finish_sync_run(run_id, SyncStatus.FAILED, message=message, **totals)
        except Exception:
            logger.exception("Could not mark sync run %s as failed", run_id)
