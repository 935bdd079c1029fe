"""
Pytest configuration and fixtures
"""

from typing import List, Optional

import pytest

from pokedex.catalog.schemas import CatalogEntry, CatalogPage, DetailRecord, EvolutionTrigger
from pokedex.config import Settings
from pokedex.errors import NotFoundError, UpstreamError


BASE = "https://pokeapi.co/api/v2"


def entry(name: str, idx: int, kind: str = "pokemon") -> CatalogEntry:
    return CatalogEntry(name=name, url=f"{BASE}/{kind}/{idx}/")


SAMPLE_CATALOG = [entry("bulbasaur", 1), entry("ivysaur", 2), entry("venusaur", 3)]

SAMPLE_TRIGGERS = [
    entry(name, i + 1, kind="evolution-trigger")
    for i, name in enumerate(
        ["level-up", "trade", "use-item", "shed", "spin", "tower-of-darkness", "three-critical-hits"]
    )
]


def detail_payload(name: str = "bulbasaur", idx: int = 1) -> dict:
    return {
        "id": idx,
        "name": name,
        "height": 7,
        "weight": 69,
        "sprites": {
            "front_default": f"https://img.example/{idx}.png",
            "other": {"official-artwork": {"front_default": f"https://img.example/art/{idx}.png"}},
        },
        "types": [
            {"slot": 2, "type": {"name": "poison", "url": f"{BASE}/type/4/"}},
            {"slot": 1, "type": {"name": "grass", "url": f"{BASE}/type/12/"}},
        ],
        "stats": [
            {"base_stat": 45, "effort": 0, "stat": {"name": "hp", "url": f"{BASE}/stat/1/"}},
            {"base_stat": 49, "effort": 0, "stat": {"name": "attack", "url": f"{BASE}/stat/2/"}},
        ],
    }


class FakePokeApi:
    """In-memory stand-in for ``PokeApiClient`` that records every call."""

    def __init__(self, entries: Optional[List[CatalogEntry]] = None) -> None:
        self.entries = list(SAMPLE_CATALOG if entries is None else entries)
        self.triggers = list(SAMPLE_TRIGGERS)
        self.calls: List[tuple] = []
        self.error: Optional[Exception] = None

    def fetch_page(self, limit: int, offset: int) -> CatalogPage:
        self.calls.append(("fetch_page", limit, offset))
        if self.error is not None:
            raise self.error
        return CatalogPage(count=len(self.entries), results=self.entries[offset:offset + limit])

    def fetch_by_name(self, name: str) -> DetailRecord:
        self.calls.append(("fetch_by_name", name))
        if self.error is not None:
            raise self.error
        for i, e in enumerate(self.entries, start=1):
            if e.name == name.lower():
                return DetailRecord.from_payload(detail_payload(e.name, i))
        raise NotFoundError(f"{name} not found", status_code=404)

    def fetch_secondary_list(self, limit: int, offset: int) -> CatalogPage:
        self.calls.append(("fetch_secondary_list", limit, offset))
        if self.error is not None:
            raise self.error
        return CatalogPage(count=len(self.triggers), results=self.triggers[offset:offset + limit])

    def fetch_evolution_trigger(self, name: str) -> EvolutionTrigger:
        self.calls.append(("fetch_evolution_trigger", name))
        if self.error is not None:
            raise self.error
        for i, t in enumerate(self.triggers, start=1):
            if t.name == name.lower():
                return EvolutionTrigger(id=i, name=t.name, names={"en": t.name.title()})
        raise NotFoundError(f"{name} not found", status_code=404)

    def page_calls(self) -> List[tuple]:
        return [c for c in self.calls if c[0] == "fetch_page"]


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_api() -> FakePokeApi:
    return FakePokeApi()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def upstream_down() -> UpstreamError:
    return UpstreamError("Upstream returned HTTP 503", status_code=503)
