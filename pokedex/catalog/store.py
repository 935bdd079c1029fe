"""
Query layer for the catalogue API.

``CatalogQueryService`` answers list queries from the cached catalogue:
it applies the optional name filter, counts what is left and slices out
the requested window.  Upstream order is kept as-is; nothing is sorted.
"""

from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional, Protocol, Sequence

from .schemas import CatalogEntry, QueryParams, QueryResult


class CatalogSource(Protocol):
    def get_catalog(self) -> Sequence[CatalogEntry]: ...


def _norm(s: Optional[str]) -> str:
    """Normalize a string for case-insensitive comparison.

    Parameters
    ----------
    s : Optional[str]
        The string to normalize.

    Returns
    -------
    str
        The lowercased, stripped string. An empty string is returned
        when the input is ``None`` or empty.
    """
    return (s or "").strip().lower()


def filter_by_name(entries: Iterable[CatalogEntry], term: Optional[str]) -> List[CatalogEntry]:
    """Keep the entries whose name contains ``term``, ignoring case.

    An empty term keeps everything.  Relative order is preserved.
    """
    needle = _norm(term)
    if not needle:
        return list(entries)
    return [e for e in entries if needle in e.name.lower()]


def paginate(items: Sequence[CatalogEntry], offset: int, limit: int) -> List[CatalogEntry]:
    """Return ``items[offset:offset + limit]``, empty when out of range."""
    start = max(0, offset)
    if start >= len(items):
        return []
    return list(items[start:start + max(0, limit)])


class CatalogQueryService:
    """Filter and paginate the cached catalogue.

    Parameters
    ----------
    cache : CatalogSource
        Anything with a ``get_catalog()`` method, normally the
        process-wide ``CatalogCache``.
    """

    def __init__(self, cache: CatalogSource) -> None:
        self.cache = cache

    def query(self, params: QueryParams) -> QueryResult:
        """Run one list query.

        ``total_count`` is the size of the filtered set when a search term
        is given and of the whole catalogue otherwise.  ``UpstreamError``
        from the cache propagates unchanged.
        """
        catalog = self.cache.get_catalog()
        matches = filter_by_name(catalog, params.search_term) if params.search_term else catalog
        return QueryResult(
            page=paginate(matches, params.offset, params.limit),
            total_count=len(matches),
        )

    async def aquery(self, params: QueryParams) -> QueryResult:
        # The cache may block on the network, so keep it off the event loop.
        return await asyncio.to_thread(self.query, params)
