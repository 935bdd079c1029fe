"""
Route definitions for the catalogue API.

Endpoints under /api:
- GET  /pokemon                     : paginated, filterable listing (cached)
- GET  /pokemon/{name}              : full record for one Pokémon (not cached)
- GET  /evolution-triggers          : paginated evolution triggers (not cached)
- GET  /evolution-triggers/{name}   : one evolution trigger (not cached)
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..config import Settings
from ..errors import NotFoundError, UpstreamError, ValidationError
from .pokeapi_service import PokeApiClient
from .schemas import (
    DetailRecord,
    EvolutionTrigger,
    ListResponse,
    QueryParams,
    SecondaryPage,
)
from .store import CatalogQueryService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["pokemon"])


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_query_service(request: Request) -> CatalogQueryService:
    return request.app.state.query_service


def get_client(request: Request) -> PokeApiClient:
    return request.app.state.client


def _upstream_failure(exc: UpstreamError, message: str) -> HTTPException:
    logger.error("%s: %s (url=%s status=%s)", message, exc, exc.url, exc.status_code)
    return HTTPException(status_code=500, detail={"message": message, "error": str(exc)})


@router.get("/pokemon", response_model=ListResponse)
def list_pokemon(
    start: Optional[str] = Query(default=None, description="Offset of the first row (0-based)"),
    size: Optional[str] = Query(default=None, description="Rows per page, clamped to [1, 100]"),
    global_filter: Optional[str] = Query(
        default=None, alias="globalFilter", description="Case-insensitive name filter"
    ),
    service: CatalogQueryService = Depends(get_query_service),
    settings: Settings = Depends(get_settings_dep),
) -> ListResponse:
    """
    Returns one page of the catalogue.

    - The full listing comes from the process-wide cache (5 minute TTL,
      stale data served if PokeAPI is down).
    - ``globalFilter`` narrows it by name; ``totalRowCount`` then counts
      the matches rather than the whole catalogue.
    - An offset past the end yields an empty page, not an error.
    """
    try:
        params = QueryParams.from_raw(
            start,
            size,
            global_filter,
            default_size=settings.default_page_size,
            max_size=settings.max_page_size,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    try:
        result = service.query(params)
    except UpstreamError as exc:
        raise _upstream_failure(exc, "Failed to fetch Pokemon data")

    return ListResponse.from_result(result)


@router.get("/pokemon/{name}", response_model=DetailRecord)
def get_pokemon(name: str, client: PokeApiClient = Depends(get_client)) -> DetailRecord:
    try:
        return client.fetch_by_name(name)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Pokemon '{name}' not found")
    except UpstreamError as exc:
        raise _upstream_failure(exc, f"Failed to fetch Pokemon {name}")


@router.get("/evolution-triggers", response_model=SecondaryPage)
def list_evolution_triggers(
    start: Optional[str] = Query(default=None, description="Offset of the first trigger"),
    size: Optional[str] = Query(default=None, description="Triggers per page"),
    client: PokeApiClient = Depends(get_client),
    settings: Settings = Depends(get_settings_dep),
) -> SecondaryPage:
    """Evolution triggers, straight from PokeAPI with no caching."""
    try:
        params = QueryParams.from_raw(start, size, None, default_size=settings.trigger_page_size)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    try:
        return client.fetch_secondary_list(params.limit, params.offset)
    except UpstreamError as exc:
        raise _upstream_failure(exc, "Failed to fetch evolution triggers")


@router.get("/evolution-triggers/{name}", response_model=EvolutionTrigger)
def get_evolution_trigger(name: str, client: PokeApiClient = Depends(get_client)) -> EvolutionTrigger:
    try:
        return client.fetch_evolution_trigger(name)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Evolution trigger '{name}' not found")
    except UpstreamError as exc:
        raise _upstream_failure(exc, f"Failed to fetch evolution trigger {name}")
