"""
Detail overlay shown when a table row is selected.

Opening the overlay starts two independent loads: the full record of the
selected Pokémon and the first page of evolution triggers.  Both go
straight to PokeAPI (no catalogue cache) and each has its own loading
flag.  Closing, whether from the close button, a backdrop click or the
Escape key, drops all state; responses that arrive afterwards, or after
the overlay was re-opened for another name, are ignored.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Awaitable, Callable, List, Optional, Set

from ..catalog.pokeapi_service import PokeApiClient
from ..catalog.schemas import CatalogEntry, DetailRecord, SecondaryPage
from ..errors import CatalogError


logger = logging.getLogger(__name__)

TRIGGER_PAGE_SIZE = 5
CLOSE_KEYS = {"Escape", "Esc"}

DetailFetch = Callable[[str], Awaitable[DetailRecord]]
TriggerFetch = Callable[[int, int], Awaitable[SecondaryPage]]


class DetailOverlay:
    def __init__(
        self,
        fetch_detail: DetailFetch,
        fetch_triggers: TriggerFetch,
        trigger_page_size: int = TRIGGER_PAGE_SIZE,
    ) -> None:
        self._fetch_detail = fetch_detail
        self._fetch_triggers = fetch_triggers
        self.trigger_page_size = max(1, trigger_page_size)
        self._generation = 0
        self._trigger_generation = 0
        self._tasks: Set[asyncio.Task] = set()
        self._reset()

    @classmethod
    def for_client(cls, client: PokeApiClient, trigger_page_size: int = TRIGGER_PAGE_SIZE) -> "DetailOverlay":
        """Wire the overlay to a blocking ``PokeApiClient`` via worker threads."""

        async def fetch_detail(name: str) -> DetailRecord:
            return await asyncio.to_thread(client.fetch_by_name, name)

        async def fetch_triggers(limit: int, offset: int) -> SecondaryPage:
            return await asyncio.to_thread(client.fetch_secondary_list, limit, offset)

        return cls(fetch_detail, fetch_triggers, trigger_page_size=trigger_page_size)

    def _reset(self) -> None:
        self.name: Optional[str] = None
        self.record: Optional[DetailRecord] = None
        self.error: Optional[str] = None
        self.is_loading_record = False
        self.triggers: List[CatalogEntry] = []
        self.trigger_offset = 0
        self.trigger_total = 0
        self.is_loading_triggers = False

    @property
    def is_open(self) -> bool:
        return self.name is not None

    # -- open / close ------------------------------------------------------

    def open(self, name: str) -> None:
        self._generation += 1
        self._reset()
        self.name = name
        self.is_loading_record = True
        self._spawn(self._load_record(self._generation, name))
        self._load_trigger_page(0)

    def close(self) -> None:
        if not self.is_open:
            return
        logger.debug("Closing detail overlay for %s", self.name)
        self._generation += 1
        self._reset()

    def backdrop_click(self, on_backdrop: bool = True) -> None:
        # Clicks bubbling up from the panel itself do not close it.
        if on_backdrop:
            self.close()

    def handle_key(self, key: str) -> bool:
        if key in CLOSE_KEYS and self.is_open:
            self.close()
            return True
        return False

    # -- evolution trigger pagination -------------------------------------

    @property
    def current_trigger_page(self) -> int:
        return self.trigger_offset // self.trigger_page_size + 1

    @property
    def total_trigger_pages(self) -> int:
        return math.ceil(self.trigger_total / self.trigger_page_size)

    @property
    def has_next_trigger_page(self) -> bool:
        return self.trigger_offset + self.trigger_page_size < self.trigger_total

    @property
    def has_previous_trigger_page(self) -> bool:
        return self.trigger_offset > 0

    def change_trigger_page(self, offset: int) -> None:
        if not self.is_open:
            return
        self._load_trigger_page(max(0, int(offset)))

    def next_trigger_page(self) -> bool:
        if not self.has_next_trigger_page:
            return False
        self.change_trigger_page(self.trigger_offset + self.trigger_page_size)
        return True

    def previous_trigger_page(self) -> bool:
        if not self.has_previous_trigger_page:
            return False
        self.change_trigger_page(self.trigger_offset - self.trigger_page_size)
        return True

    # -- loading -----------------------------------------------------------

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _load_trigger_page(self, offset: int) -> None:
        self._trigger_generation += 1
        self.trigger_offset = offset
        self.is_loading_triggers = True
        self._spawn(self._load_triggers(self._generation, self._trigger_generation, offset))

    async def _load_record(self, generation: int, name: str) -> None:
        try:
            record = await self._fetch_detail(name)
        except Exception as exc:
            if generation != self._generation:
                return
            logger.error(
                "Error fetching Pokemon %s: %s", name, exc, exc_info=not isinstance(exc, CatalogError)
            )
            self.error = f"Failed to load {name}."
            self.is_loading_record = False
            return
        if generation != self._generation:
            return
        self.record = record
        self.is_loading_record = False

    async def _load_triggers(self, generation: int, trigger_generation: int, offset: int) -> None:
        try:
            page = await self._fetch_triggers(self.trigger_page_size, offset)
        except Exception as exc:
            if generation != self._generation or trigger_generation != self._trigger_generation:
                return
            # The record stays usable; only the trigger table is left empty.
            logger.error(
                "Error fetching evolution triggers: %s", exc, exc_info=not isinstance(exc, CatalogError)
            )
            self.triggers = []
            self.is_loading_triggers = False
            return
        if generation != self._generation or trigger_generation != self._trigger_generation:
            return
        self.triggers = list(page.results)
        self.trigger_total = page.count
        self.is_loading_triggers = False
