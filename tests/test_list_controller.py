import asyncio

import pytest

from pokedex.browser.detail_overlay import DetailOverlay
from pokedex.browser.list_controller import ListController
from pokedex.catalog.cache import CatalogCache
from pokedex.catalog.schemas import QueryParams, QueryResult
from pokedex.catalog.store import CatalogQueryService
from pokedex.errors import UpstreamError

from conftest import FakePokeApi, entry


class RecordingQuery:
    """Query function that answers instantly and remembers what it was asked."""

    def __init__(self, service=None):
        self.service = service or CatalogQueryService(CatalogCache(FakePokeApi()))
        self.calls = []

    async def __call__(self, params: QueryParams) -> QueryResult:
        self.calls.append(params)
        return self.service.query(params)


def names(result):
    return [e.name for e in result.page]


@pytest.mark.asyncio
async def test_rapid_searches_collapse_into_one_query():
    query = RecordingQuery()
    controller = ListController(query, debounce=0.3)

    controller.submit_search("a")
    await asyncio.sleep(0.05)
    controller.submit_search("ab")
    await controller.wait_idle()

    assert [p.search_term for p in query.calls] == ["ab"]
    assert controller.dispatch_count == 1


@pytest.mark.asyncio
async def test_search_resets_offset_and_updates_result():
    query = RecordingQuery()
    controller = ListController(query, page_size=2, debounce=0)

    controller.change_page(2)
    await controller.wait_idle()
    assert names(controller.last_result) == ["venusaur"]

    controller.submit_search("SAUR")
    await controller.wait_idle()
    assert controller.offset == 0
    assert names(controller.last_result) == ["bulbasaur", "ivysaur"]
    assert controller.last_result.total_count == 3
    assert controller.is_loading is False
    assert controller.last_error is None


@pytest.mark.asyncio
async def test_page_changes_keep_search_term():
    query = RecordingQuery()
    controller = ListController(query, page_size=1, debounce=0, search_term="saur")

    controller.change_page(1)
    await controller.wait_idle()
    assert query.calls[-1] == QueryParams(offset=1, limit=1, search_term="saur")

    controller.change_page_size(2)
    await controller.wait_idle()
    assert query.calls[-1] == QueryParams(offset=0, limit=2, search_term="saur")


@pytest.mark.asyncio
async def test_next_and_previous_page():
    query = RecordingQuery()
    controller = ListController(query, page_size=2, debounce=0)
    await controller.load_initial()

    assert controller.page_count == 2
    assert controller.has_previous_page is False
    assert controller.previous_page() is False

    assert controller.next_page() is True
    await controller.wait_idle()
    assert controller.page_index == 1
    assert names(controller.last_result) == ["venusaur"]
    assert controller.next_page() is False

    assert controller.previous_page() is True
    await controller.wait_idle()
    assert controller.offset == 0


@pytest.mark.asyncio
async def test_page_size_is_clamped():
    controller = ListController(RecordingQuery(), debounce=0)
    controller.change_page_size(500)
    assert controller.page_size == 100
    controller.change_page_size(0)
    assert controller.page_size == 1
    await controller.wait_idle()


@pytest.mark.asyncio
async def test_stale_response_is_discarded():
    gates = {"a": asyncio.Event(), "ab": asyncio.Event()}

    async def gated_query(params):
        await gates[params.search_term].wait()
        return QueryResult(page=[entry(params.search_term, 1)], total_count=1)

    controller = ListController(gated_query, debounce=0)
    controller.submit_search("a")
    await asyncio.sleep(0.01)
    assert controller.is_loading is True
    assert controller.interactions_enabled is False

    controller.submit_search("ab")
    await asyncio.sleep(0.01)
    gates["ab"].set()
    await asyncio.sleep(0.01)
    assert names(controller.last_result) == ["ab"]
    assert controller.is_loading is False

    gates["a"].set()
    await controller.wait_idle()
    assert names(controller.last_result) == ["ab"]
    assert controller.is_loading is False


@pytest.mark.asyncio
async def test_loading_stays_on_until_latest_query_finishes():
    gates = {"a": asyncio.Event(), "ab": asyncio.Event()}

    async def gated_query(params):
        await gates[params.search_term].wait()
        return QueryResult(page=[], total_count=0)

    controller = ListController(gated_query, debounce=0)
    controller.submit_search("a")
    await asyncio.sleep(0.01)
    controller.submit_search("ab")
    await asyncio.sleep(0.01)

    gates["a"].set()
    await asyncio.sleep(0.01)
    assert controller.is_loading is True

    gates["ab"].set()
    await controller.wait_idle()
    assert controller.is_loading is False


@pytest.mark.asyncio
async def test_failure_clears_results_and_records_error():
    error = UpstreamError("boom")
    failing = {"on": False}
    query = RecordingQuery()

    async def flaky(params):
        if failing["on"]:
            raise error
        return await query(params)

    controller = ListController(flaky, debounce=0)
    await controller.load_initial()
    assert len(controller.last_result.page) == 3

    failing["on"] = True
    controller.submit_search("bulba")
    await controller.wait_idle()

    assert controller.last_error is error
    assert controller.last_result == QueryResult.empty()
    assert controller.is_loading is False


@pytest.mark.asyncio
async def test_unexpected_exception_is_wrapped_and_clears_loading():
    cause = RuntimeError("unexpected")

    async def broken(params):
        raise cause

    controller = ListController(broken, debounce=0)
    controller.submit_search("pika")
    await controller.wait_idle()

    assert controller.is_loading is False
    assert isinstance(controller.last_error, UpstreamError)
    assert controller.last_error.__cause__ is cause
    assert controller.last_result == QueryResult.empty()
    assert controller.interactions_enabled is True


@pytest.mark.asyncio
async def test_from_settings_uses_configured_debounce_and_page_size(settings):
    settings.search_debounce_seconds = 0.05
    settings.default_page_size = 2
    query = RecordingQuery()
    controller = ListController.from_settings(settings, query)

    assert controller.debounce == 0.05
    assert controller.page_size == 2

    controller.submit_search("saur")
    await controller.wait_idle()
    assert query.calls == [QueryParams(offset=0, limit=2, search_term="saur")]


def test_from_settings_keeps_explicit_overrides(settings):
    controller = ListController.from_settings(settings, RecordingQuery(), debounce=0, page_size=7)
    assert controller.debounce == 0
    assert controller.page_size == 7


@pytest.mark.asyncio
async def test_location_mirrors_search_term_only():
    controller = ListController(RecordingQuery(), debounce=0, location="http://localhost:3000/")

    controller.submit_search("pika")
    assert controller.location == "http://localhost:3000/?search=pika"

    controller.change_page(20)
    controller.change_page_size(50)
    assert controller.location == "http://localhost:3000/?search=pika"

    controller.clear_search()
    assert controller.location == "http://localhost:3000/"
    assert controller.search_term == ""
    await controller.wait_idle()


@pytest.mark.asyncio
async def test_from_location_seeds_initial_search():
    query = RecordingQuery()
    controller = ListController.from_location("http://localhost:3000/?search=venu&tab=1", query)
    await controller.load_initial()

    assert controller.search_term == "venu"
    assert names(controller.last_result) == ["venusaur"]
    assert controller.dispatch_count == 1


@pytest.mark.asyncio
async def test_select_opens_overlay_without_touching_list_state():
    api = FakePokeApi()
    overlay = DetailOverlay.for_client(api)
    query = RecordingQuery()
    controller = ListController(query, debounce=0, overlay=overlay)
    await controller.load_initial()

    controller.select("ivysaur")
    await overlay.wait_idle()
    assert controller.selected == "ivysaur"
    assert overlay.record.name == "ivysaur"
    assert len(query.calls) == 1

    controller.deselect()
    assert controller.selected is None
    assert overlay.is_open is False


@pytest.mark.asyncio
async def test_escape_on_overlay_clears_selection():
    overlay = DetailOverlay.for_client(FakePokeApi())
    controller = ListController(RecordingQuery(), debounce=0, overlay=overlay)

    controller.select("bulbasaur")
    assert overlay.handle_key("Escape") is True
    assert controller.selected is None
    await overlay.wait_idle()


@pytest.mark.asyncio
async def test_select_without_overlay_tracks_name():
    controller = ListController(RecordingQuery(), debounce=0)
    controller.select("venusaur")
    assert controller.selected == "venusaur"
    controller.deselect()
    assert controller.selected is None
