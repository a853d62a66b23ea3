import logging
import sqlite3
from typing import List, Optional

import psycopg2
from pydantic import BaseModel

from ihostit.db.models.catalog import App, Category, SyncRun, SyncStatus
from ihostit.db.repositories.catalog import (
    AppRepository,
    CategoryRepository,
    SyncRunRepository,
)
from ihostit.utils import utcnow

logger = logging.getLogger(__name__)

DB_ERRORS = (sqlite3.Error, psycopg2.Error)


class RecordCreationError(Exception):
    """A single category or app could not be written to the store."""


class CatalogStats(BaseModel):
    total_apps: int
    total_categories: int


class CatalogStore:
    """Storage operations the sync pipeline relies on.

    Categories and apps are only ever created, listed and cleared; the
    sync run history is append-only apart from finishing a run.
    """

    def __init__(self, manager):
        self.manager = manager
        self.categories = CategoryRepository(manager)
        self.apps = AppRepository(manager)
        self.sync_runs = SyncRunRepository(manager)

    def initialize(self):
        self.manager.initialize_db()

    # Categories

    def create_category(self, name: str, description: Optional[str] = None) -> Category:
        try:
            category = self.categories.create(name=name, description=description or None)
        except DB_ERRORS as exc:
            raise RecordCreationError(f"Could not create category '{name}': {exc}") from exc
        if category is None:
            raise RecordCreationError(f"Category '{name}' was not persisted")
        return category

    def list_categories(self) -> List[Category]:
        return self.categories.get_all()

    # Apps

    def create_app(
        self,
        category_id: int,
        name: str,
        homepage_url: str,
        description: Optional[str] = None,
        source_code_url: Optional[str] = None,
        demo_url: Optional[str] = None,
        license: str = "Unknown",
        language: Optional[str] = None,
        subcategory: Optional[str] = None,
    ) -> App:
        fields = {
            "name": name,
            "description": description,
            "homepage_url": homepage_url,
            "source_code_url": source_code_url,
            "demo_url": demo_url,
            "license": license,
            "language": language,
            "category_id": category_id,
            "subcategory": subcategory,
        }
        try:
            app = self.apps.create(**{k: v for k, v in fields.items() if v is not None})
        except DB_ERRORS as exc:
            raise RecordCreationError(f"Could not create app '{name}': {exc}") from exc
        if app is None:
            raise RecordCreationError(f"App '{name}' was not persisted")
        return app

    def list_apps(self, category_id: Optional[int] = None, q: Optional[str] = None) -> List[App]:
        if category_id is None and not q:
            return self.apps.get_all()
        return self.apps.search(q=q, category_id=category_id)

    def clear_catalog(self):
        """Remove every app and category. Sync history is kept."""
        removed_apps = self.apps.delete_all()
        removed_categories = self.categories.delete_all()
        logger.info(
            "Cleared catalog: %s apps, %s categories removed",
            removed_apps,
            removed_categories,
        )

    # Counts

    def count_categories(self) -> int:
        return self.categories.count()

    def count_apps(self) -> int:
        return self.apps.count()

    def get_stats(self) -> CatalogStats:
        return CatalogStats(
            total_apps=self.count_apps(), total_categories=self.count_categories()
        )

    # Sync runs

    def create_sync_run(self, status: SyncStatus) -> SyncRun:
        run = self.sync_runs.create(
            status=status.value,
            total_apps=0,
            total_categories=0,
            started_at=utcnow().isoformat(),
        )
        if run is None:
            raise RecordCreationError("Sync run was not persisted")
        return run

    def finish_sync_run(
        self,
        run_id: int,
        status: SyncStatus,
        total_apps: Optional[int] = None,
        total_categories: Optional[int] = None,
        message: Optional[str] = None,
    ) -> Optional[SyncRun]:
        if status not in (SyncStatus.COMPLETED, SyncStatus.FAILED):
            raise ValueError(f"Cannot finish a sync run with status '{status.value}'")
        run = self.sync_runs.finish(
            run_id,
            status=status,
            finished_at=utcnow(),
            total_apps=total_apps,
            total_categories=total_categories,
            message=message,
        )
        if run is None:
            logger.warning(
                "Sync run %s is already finished, not marking it %s", run_id, status.value
            )
        return run

    def get_latest_sync_run(self) -> Optional[SyncRun]:
        return self.sync_runs.get_latest()

    def get_latest_completed_sync_run(self) -> Optional[SyncRun]:
        return self.sync_runs.get_latest_by_status(SyncStatus.COMPLETED)

    def list_sync_runs(self, limit: int = 20) -> List[SyncRun]:
        return self.sync_runs.get_recent(limit)

    def fail_interrupted_sync_runs(self, message: str) -> int:
        """Mark runs left ``in_progress`` by a previous process as failed."""
        interrupted = self.sync_runs.get_by_status(SyncStatus.IN_PROGRESS)
        for run in interrupted:
            self.finish_sync_run(run.id, SyncStatus.FAILED, message=message)
        return len(interrupted)
