"""
Browser-side state for the Pokémon table.

``ListController`` owns the search term, the pagination window and the
loading/error flags of the listing.  User events (search submitted,
page changed, row clicked) are plain synchronous methods, the way a UI
calls its handlers; the resulting query runs as an asyncio task.

Two rules keep the table consistent while the user types:

* transitions arriving within ``debounce`` seconds of each other collapse
  into a single query built from the latest state;
* every transition bumps a generation counter, and a response is only
  applied if no newer transition happened while it was in flight.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Set

from ..catalog.schemas import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, QueryParams, QueryResult
from ..config import Settings
from ..errors import CatalogError, as_catalog_error
from .detail_overlay import DetailOverlay
from .location import read_search_param, set_search_param


logger = logging.getLogger(__name__)

SEARCH_DEBOUNCE = 0.3  # seconds

QueryFn = Callable[[QueryParams], Awaitable[QueryResult]]


@dataclass
class ListState:
    search_term: str = ""
    offset: int = 0
    page_size: int = DEFAULT_PAGE_SIZE
    is_loading: bool = False
    last_result: QueryResult = field(default_factory=QueryResult.empty)
    last_error: Optional[CatalogError] = None


class ListController:
    """Search/pagination state machine for the catalogue table.

    Parameters
    ----------
    query : QueryFn
        Coroutine function answering a ``QueryParams``.  Use
        ``CatalogQueryService.aquery`` in-process or
        ``CatalogApiClient.query`` against a running API.
    page_size : int
        Initial rows per page, clamped to ``[1, 100]``.
    debounce : float
        Quiet period, in seconds, before a query is dispatched.
    search_term : str
        Initial search term.
    location : str
        Current page URL; its ``search`` parameter tracks the term.
    overlay : DetailOverlay, optional
        Detail view opened by ``select()``.
    """

    def __init__(
        self,
        query: QueryFn,
        page_size: int = DEFAULT_PAGE_SIZE,
        debounce: float = SEARCH_DEBOUNCE,
        search_term: str = "",
        location: str = "/",
        overlay: Optional[DetailOverlay] = None,
    ) -> None:
        self._query = query
        self.debounce = debounce
        self.overlay = overlay
        self.state = ListState(
            search_term=(search_term or "").strip(),
            page_size=_clamp_size(page_size),
        )
        self.location = set_search_param(location, self.state.search_term)
        self.dispatch_count = 0
        self._selected: Optional[str] = None
        self._generation = 0
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings: Settings, query: QueryFn, **kwargs) -> "ListController":
        """Build a controller using the configured page size and debounce."""
        kwargs.setdefault("page_size", settings.default_page_size)
        kwargs.setdefault("debounce", settings.search_debounce_seconds)
        return cls(query, **kwargs)

    @classmethod
    def from_location(cls, url: str, query: QueryFn, **kwargs) -> "ListController":
        """Build a controller whose initial term comes from ``?search=``."""
        return cls(query, search_term=read_search_param(url), location=url, **kwargs)

    # -- read-only views -------------------------------------------------

    @property
    def search_term(self) -> str:
        return self.state.search_term

    @property
    def offset(self) -> int:
        return self.state.offset

    @property
    def page_size(self) -> int:
        return self.state.page_size

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def last_result(self) -> QueryResult:
        return self.state.last_result

    @property
    def last_error(self) -> Optional[CatalogError]:
        return self.state.last_error

    @property
    def interactions_enabled(self) -> bool:
        # Rows and pager are disabled under the loading overlay.
        return not self.state.is_loading

    @property
    def selected(self) -> Optional[str]:
        if self.overlay is not None:
            return self.overlay.name
        return self._selected

    @property
    def page_index(self) -> int:
        return self.state.offset // self.state.page_size

    @property
    def page_count(self) -> int:
        return math.ceil(self.state.last_result.total_count / self.state.page_size)

    @property
    def has_next_page(self) -> bool:
        return self.state.offset + self.state.page_size < self.state.last_result.total_count

    @property
    def has_previous_page(self) -> bool:
        return self.state.offset > 0

    def current_params(self) -> QueryParams:
        return QueryParams(
            offset=self.state.offset,
            limit=self.state.page_size,
            search_term=self.state.search_term,
        )

    # -- transitions ------------------------------------------------------

    def submit_search(self, term: str) -> None:
        self.state.search_term = (term or "").strip()
        self.state.offset = 0
        self.location = set_search_param(self.location, self.state.search_term)
        self._schedule()

    def clear_search(self) -> None:
        self.submit_search("")

    def change_page(self, new_offset: int) -> None:
        self.state.offset = max(0, int(new_offset))
        self._schedule()

    def change_page_size(self, new_size: int) -> None:
        self.state.page_size = _clamp_size(new_size)
        self.state.offset = 0
        self._schedule()

    def next_page(self) -> bool:
        if not self.has_next_page:
            return False
        self.change_page(self.state.offset + self.state.page_size)
        return True

    def previous_page(self) -> bool:
        if not self.has_previous_page:
            return False
        self.change_page(self.state.offset - self.state.page_size)
        return True

    def select(self, name: str) -> None:
        self._selected = name
        if self.overlay is not None:
            self.overlay.open(name)

    def deselect(self) -> None:
        self._selected = None
        if self.overlay is not None:
            self.overlay.close()

    # -- dispatch ----------------------------------------------------------

    async def load_initial(self) -> None:
        """Query the current state right away, skipping the debounce."""
        self._cancel_timer()
        self._generation += 1
        await self._start_dispatch()

    async def wait_idle(self) -> None:
        """Wait until no debounce timer or query is outstanding."""
        while True:
            pending = [t for t in (self._timer, *self._inflight) if t is not None and not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def _schedule(self) -> None:
        self._generation += 1
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._debounced())

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _debounced(self) -> None:
        await asyncio.sleep(self.debounce)
        self._timer = None
        self._start_dispatch()

    def _start_dispatch(self) -> asyncio.Task:
        generation = self._generation
        params = self.current_params()
        self.state.is_loading = True
        self.dispatch_count += 1
        task = asyncio.get_running_loop().create_task(self._dispatch(generation, params))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _dispatch(self, generation: int, params: QueryParams) -> None:
        logger.debug("Dispatching query #%d: %s", generation, params)
        try:
            result = await self._query(params)
        except Exception as exc:
            if generation != self._generation:
                logger.debug("Discarding failure of superseded query #%d", generation)
                return
            logger.error("Error fetching Pokemon: %s", exc, exc_info=not isinstance(exc, CatalogError))
            self.state.last_error = as_catalog_error(exc)
            self.state.last_result = QueryResult.empty()
            self.state.is_loading = False
            return

        if generation != self._generation:
            logger.debug("Discarding result of superseded query #%d", generation)
            return
        self.state.last_result = result
        self.state.last_error = None
        self.state.is_loading = False


def _clamp_size(size: int) -> int:
    return min(MAX_PAGE_SIZE, max(1, int(size)))
