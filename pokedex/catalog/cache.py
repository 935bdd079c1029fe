"""
Process-wide cache of the full Pokémon listing.

The whole catalogue (~1300 entries) is pulled with a single large-limit
request and kept for ``ttl`` seconds.  When a refresh fails the previous
listing keeps being served; only a cold cache lets the ``UpstreamError``
through.  The app factory builds one ``CatalogCache`` per process and
hands it to the query service, so tests can build their own.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Tuple

from ..errors import UpstreamError
from .schemas import CatalogEntry, CatalogPage


logger = logging.getLogger(__name__)

CACHE_DURATION = 5 * 60  # seconds
FULL_CATALOG_LIMIT = 1500


class PageSource(Protocol):
    def fetch_page(self, limit: int, offset: int) -> CatalogPage: ...


@dataclass(frozen=True)
class CacheEntry:
    entries: Tuple[CatalogEntry, ...]
    fetched_at: float


class CatalogCache:
    """Time-bounded, stale-on-error cache of the full catalogue.

    Readers never observe a partially built value: a refresh builds a
    new ``CacheEntry`` and publishes it with a single assignment.  Misses
    are handled under a lock so that concurrent requests arriving while
    the cache is cold or expired share one upstream fetch.
    """

    def __init__(
        self,
        source: PageSource,
        ttl: float = CACHE_DURATION,
        fetch_limit: int = FULL_CATALOG_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self.ttl = ttl
        self.fetch_limit = fetch_limit
        self._clock = clock
        self._entry: Optional[CacheEntry] = None
        self._refresh_lock = threading.Lock()
        # Number of finished upstream attempts, updated under _refresh_lock.
        self._attempts = 0
        self._last_error: Optional[UpstreamError] = None

    @property
    def snapshot(self) -> Optional[CacheEntry]:
        return self._entry

    def _is_fresh(self, entry: Optional[CacheEntry]) -> bool:
        return entry is not None and (self._clock() - entry.fetched_at) < self.ttl

    def get_catalog(self) -> Tuple[CatalogEntry, ...]:
        entry = self._entry
        if self._is_fresh(entry):
            logger.debug("Using cached Pokemon data (%d entries)", len(entry.entries))
            return entry.entries

        attempt = self._attempts
        with self._refresh_lock:
            entry = self._entry
            if self._is_fresh(entry):
                return entry.entries
            # An attempt finished while we waited for the lock: take its
            # outcome instead of queueing a second upstream call.
            if self._attempts != attempt:
                if entry is not None:
                    return entry.entries
                if self._last_error is not None:
                    raise self._last_error

            logger.info("Fetching fresh Pokemon data from API (limit=%d)", self.fetch_limit)
            try:
                page = self._source.fetch_page(self.fetch_limit, 0)
            except UpstreamError as exc:
                self._attempts += 1
                self._last_error = exc
                if entry is not None:
                    logger.warning("Using stale cache due to API error: %s", exc)
                    return entry.entries
                logger.error("Failed to fetch Pokemon data: %s", exc)
                raise

            fresh = CacheEntry(entries=tuple(page.results), fetched_at=self._clock())
            self._entry = fresh
            self._last_error = None
            self._attempts += 1
            return fresh.entries

    def invalidate(self) -> None:
        """Drop the cached listing; the next read goes upstream."""
        with self._refresh_lock:
            self._entry = None
