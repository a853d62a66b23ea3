import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ihostit.config.settings import DEFAULT_SOURCE_URL
from ihostit.utils import utcnow

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """The upstream document could not be retrieved."""


@dataclass
class CachedDocument:
    url: str
    document: str
    retrieved_at: datetime


class SourceFetcher:
    """Fetches the upstream README, reusing a copy younger than ``cache_ttl``."""

    def __init__(
        self,
        url: str = DEFAULT_SOURCE_URL,
        cache_ttl: timedelta = timedelta(hours=24),
        timeout_seconds: int = 15,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.url = url
        self.cache_ttl = cache_ttl
        self.timeout_seconds = timeout_seconds
        self.clock = clock
        self._cache: Optional[CachedDocument] = None

    @property
    def cached(self) -> Optional[CachedDocument]:
        return self._cache

    def fetch(self) -> str:
        now = self.clock()
        if self._is_fresh(now):
            logger.info("Using cached document for %s", self.url)
            return self._cache.document

        logger.info("Fetching fresh document from %s", self.url)
        document = self._download()
        self._cache = CachedDocument(url=self.url, document=document, retrieved_at=now)
        return document

    def clear_cache(self):
        self._cache = None

    def _is_fresh(self, now: datetime) -> bool:
        if self._cache is None or self._cache.url != self.url:
            return False
        return now - self._cache.retrieved_at < self.cache_ttl

    def _download(self) -> str:
        request = Request(self.url, headers={"Accept": "text/plain, text/markdown"})
        try:
            with urlopen(request, timeout=self.timeout_seconds) as response:
                status = getattr(response, "status", 200)
                if status < 200 or status >= 300:
                    raise FetchError(f"Failed to fetch {self.url}: HTTP {status}")
                payload = response.read().decode("utf-8", errors="replace")
        except HTTPError as exc:
            raise FetchError(f"Failed to fetch {self.url}: HTTP {exc.code} {exc.reason}") from exc
        except URLError as exc:
            raise FetchError(f"Failed to fetch {self.url}: {exc.reason}") from exc
        except (TimeoutError, OSError) as exc:
            raise FetchError(f"Failed to fetch {self.url}: {exc}") from exc

        logger.info("Fetched %s characters from %s", len(payload), self.url)
        return payload
