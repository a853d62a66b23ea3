from datetime import datetime, timedelta
from unittest.mock import patch
from urllib.error import HTTPError, URLError

import pytest

from ihostit.catalog.source import FetchError, SourceFetcher


class _FakeResponse:
    def __init__(self, payload: str, status: int = 200):
        self.payload = payload
        self.status = status

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def read(self):
        return self.payload.encode("utf-8")


class _Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self):
        return self.now


def _fetcher(clock):
    return SourceFetcher(url="https://raw.example/README.md", clock=clock)


def test_fetch_downloads_and_caches_document():
    clock = _Clock(datetime(2026, 1, 1, 12, 0))
    fetcher = _fetcher(clock)

    with patch(
        "ihostit.catalog.source.urlopen", return_value=_FakeResponse("## Software")
    ) as mock_urlopen:
        assert fetcher.fetch() == "## Software"
        clock.now += timedelta(hours=23)
        assert fetcher.fetch() == "## Software"

    assert mock_urlopen.call_count == 1
    assert fetcher.cached.retrieved_at == datetime(2026, 1, 1, 12, 0)


def test_fetch_refetches_after_ttl_expires():
    clock = _Clock(datetime(2026, 1, 1, 12, 0))
    fetcher = _fetcher(clock)

    with patch(
        "ihostit.catalog.source.urlopen",
        side_effect=[_FakeResponse("old"), _FakeResponse("new")],
    ) as mock_urlopen:
        assert fetcher.fetch() == "old"
        clock.now += timedelta(hours=24)
        assert fetcher.fetch() == "new"

    assert mock_urlopen.call_count == 2
    assert fetcher.cached.document == "new"
    assert fetcher.cached.retrieved_at == datetime(2026, 1, 2, 12, 0)


def test_clear_cache_forces_refetch():
    fetcher = _fetcher(_Clock(datetime(2026, 1, 1)))

    with patch(
        "ihostit.catalog.source.urlopen",
        side_effect=[_FakeResponse("first"), _FakeResponse("second")],
    ):
        assert fetcher.fetch() == "first"
        fetcher.clear_cache()
        assert fetcher.fetch() == "second"


def test_http_error_raises_fetch_error_and_keeps_cache_empty():
    fetcher = _fetcher(_Clock(datetime(2026, 1, 1)))
    error = HTTPError("https://raw.example/README.md", 404, "Not Found", None, None)

    with patch("ihostit.catalog.source.urlopen", side_effect=error):
        with pytest.raises(FetchError, match="HTTP 404"):
            fetcher.fetch()

    assert fetcher.cached is None


def test_transport_error_raises_fetch_error():
    fetcher = _fetcher(_Clock(datetime(2026, 1, 1)))

    with patch(
        "ihostit.catalog.source.urlopen", side_effect=URLError("connection refused")
    ):
        with pytest.raises(FetchError, match="connection refused"):
            fetcher.fetch()


def test_timeout_raises_fetch_error():
    fetcher = _fetcher(_Clock(datetime(2026, 1, 1)))

    with patch("ihostit.catalog.source.urlopen", side_effect=TimeoutError("timed out")):
        with pytest.raises(FetchError, match="timed out"):
            fetcher.fetch()


def test_non_success_status_raises_fetch_error():
    fetcher = _fetcher(_Clock(datetime(2026, 1, 1)))

    with patch(
        "ihostit.catalog.source.urlopen", return_value=_FakeResponse("", status=204)
    ):
        # 204 is a success status, the document is simply empty
        assert fetcher.fetch() == ""

    fetcher.clear_cache()
    with patch(
        "ihostit.catalog.source.urlopen", return_value=_FakeResponse("", status=302)
    ):
        with pytest.raises(FetchError, match="HTTP 302"):
            fetcher.fetch()
