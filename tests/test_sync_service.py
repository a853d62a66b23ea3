import threading
from unittest.mock import MagicMock, patch

from ihostit.catalog.source import FetchError, SourceFetcher
from ihostit.db.models.catalog import SyncStatus
from ihostit.db.store import RecordCreationError
from ihostit.sync.service import SyncService


class _Response:
    status = 200

    def __init__(self, payload: str):
        self.payload = payload

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def read(self):
        return self.payload.encode("utf-8")


class FakeFetcher:
    def __init__(self, document="", error=None):
        self.document = document
        self.error = error
        self.calls = 0
        self.cache_clears = 0

    def fetch(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.document

    def clear_cache(self):
        self.cache_clears += 1


def _seed(store):
    category = store.create_category("Existing")
    store.create_app(category.id, "Old App", "https://old.example")


def test_run_replaces_catalog_and_records_completed_run(store, sample_readme):
    _seed(store)
    service = SyncService(store, FakeFetcher(sample_readme))

    outcome = service.run()

    assert outcome.success is True
    assert outcome.counted_categories == 2
    assert outcome.counted_apps == 3
    assert outcome.message == "Successfully synced 3 apps across 2 categories"
    assert store.count_categories() == outcome.counted_categories
    assert store.count_apps() == outcome.counted_apps
    assert "Existing" not in [c.name for c in store.list_categories()]

    run = store.get_latest_sync_run()
    assert run.id == outcome.sync_run_id
    assert run.status == SyncStatus.COMPLETED
    assert run.total_apps == 3
    assert run.total_categories == 2
    assert run.finished_at is not None


def test_run_stores_app_fields_and_subcategory(store, sample_readme):
    SyncService(store, FakeFetcher(sample_readme)).run()

    email = store.categories.get_by_name("Communication - Email - Complete Solutions")
    apps = store.list_apps(category_id=email.id)
    assert email.app_count == 1
    assert apps[0].name == "Mailcow"
    assert apps[0].subcategory == "Email"
    assert apps[0].source_code_url == "https://github.com/mailcow/mailcow-dockerized"
    assert apps[0].license == "GPL-3.0"
    assert apps[0].language == "Docker"


def test_fetch_failure_leaves_store_untouched(store):
    _seed(store)
    service = SyncService(store, FakeFetcher(error=FetchError("HTTP 500")))

    outcome = service.run()

    assert outcome.success is False
    assert "HTTP 500" in outcome.message
    assert store.count_categories() == 1
    assert store.count_apps() == 1
    assert store.get_latest_sync_run().status == SyncStatus.FAILED


def test_blank_document_is_a_failure(store):
    _seed(store)

    outcome = SyncService(store, FakeFetcher("   \n")).run()

    assert outcome.success is False
    assert outcome.message == "No data received from upstream source"
    assert store.count_apps() == 1


def test_document_without_categories_leaves_store_untouched(store):
    _seed(store)

    outcome = SyncService(store, FakeFetcher("# Nothing here\n")).run()

    assert outcome.success is False
    assert outcome.message == "No categories found in upstream document"
    assert store.count_categories() == 1
    assert store.get_latest_sync_run().status == SyncStatus.FAILED


def test_unusable_documents_are_dropped_from_fetcher_cache(store):
    blank = FakeFetcher("   \n")
    SyncService(store, blank).run()
    assert blank.cache_clears == 1

    no_categories = FakeFetcher("<html>rate limited</html>")
    SyncService(store, no_categories).run()
    assert no_categories.cache_clears == 1


def test_next_run_refetches_after_unparseable_document(store, sample_readme):
    fetcher = SourceFetcher(url="https://raw.example/README.md")
    responses = [_Response("<html>rate limited</html>"), _Response(sample_readme)]
    service = SyncService(store, fetcher)

    with patch("ihostit.catalog.source.urlopen", side_effect=responses) as mock_urlopen:
        first = service.run()
        second = service.run()

    assert first.success is False
    assert second.success is True
    assert second.counted_apps == 3
    assert mock_urlopen.call_count == 2


def test_record_failures_are_skipped_and_counted(store, sample_readme):
    real_create_app = store.create_app

    def flaky_create_app(**kwargs):
        if kwargs["name"] == "Matomo":
            raise RecordCreationError("boom")
        return real_create_app(**kwargs)

    store.create_app = flaky_create_app

    outcome = SyncService(store, FakeFetcher(sample_readme)).run()

    assert outcome.success is True
    assert outcome.counted_apps == 2
    assert outcome.skipped_apps == 1
    assert store.count_apps() == 2
    analytics = store.categories.get_by_name("Analytics")
    assert analytics.app_count == 1
    assert store.get_latest_sync_run().total_apps == 2


def test_category_failure_skips_its_apps_only(store, sample_readme):
    real_create_category = store.create_category

    def flaky_create_category(name, description=None):
        if name == "Analytics":
            raise RecordCreationError("boom")
        return real_create_category(name, description)

    store.create_category = flaky_create_category

    outcome = SyncService(store, FakeFetcher(sample_readme)).run()

    assert outcome.success is True
    assert outcome.counted_categories == 1
    assert outcome.counted_apps == 1
    assert outcome.skipped_categories == 1
    assert outcome.skipped_apps == 2


def test_unexpected_error_marks_run_failed(store, sample_readme):
    parser = MagicMock(side_effect=RuntimeError("parser exploded"))

    outcome = SyncService(store, FakeFetcher(sample_readme), parser=parser).run()

    assert outcome.success is False
    assert outcome.message == "Synchronization failed: parser exploded"
    run = store.get_latest_sync_run()
    assert run.status == SyncStatus.FAILED
    assert run.message == outcome.message


def test_second_run_while_in_progress_is_a_no_op(store, sample_readme):
    started = threading.Event()
    release = threading.Event()
    results = {}

    class BlockingFetcher(FakeFetcher):
        def fetch(self):
            started.set()
            release.wait(timeout=5)
            return super().fetch()

    service = SyncService(store, BlockingFetcher(sample_readme))
    worker = threading.Thread(target=lambda: results.setdefault("first", service.run()))
    worker.start()
    assert started.wait(timeout=5)

    assert service.is_running is True
    outcome = service.run()
    in_progress = store.sync_runs.get_by_status(SyncStatus.IN_PROGRESS)

    release.set()
    worker.join(timeout=5)

    assert outcome.success is True
    assert outcome.skipped is True
    assert outcome.sync_run_id is None
    assert len(in_progress) == 1
    assert results["first"].success is True
    assert service.is_running is False
    assert len(store.list_sync_runs()) == 1
