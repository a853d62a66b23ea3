from datetime import timedelta

from ihostit.catalog.source import SourceFetcher
from ihostit.config.settings import config
from ihostit.db.session import get_db_manager
from ihostit.db.store import CatalogStore
from ihostit.sync.scheduler import SyncScheduler
from ihostit.sync.service import SyncService


def bootstrap_store() -> CatalogStore:
    """Store for the configured database, with tables created if needed."""
    store = CatalogStore(get_db_manager())
    store.initialize()
    return store


def build_fetcher() -> SourceFetcher:
    return SourceFetcher(
        url=config.source_url,
        cache_ttl=timedelta(hours=config.source_cache_hours),
        timeout_seconds=config.http_timeout_seconds,
    )


def build_scheduler(store: CatalogStore) -> SyncScheduler:
    service = SyncService(store, build_fetcher())
    return SyncScheduler(
        service,
        store,
        max_age=timedelta(hours=config.sync_max_age_hours),
        check_interval=timedelta(minutes=config.sync_check_interval_minutes),
    )
