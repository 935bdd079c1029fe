"""
Async client for this service's own ``GET /api/pokemon`` endpoint.

``CatalogApiClient.query`` has the signature ``ListController`` expects
from its query function, so a controller can drive a remote API exactly
like it drives an in-process ``CatalogQueryService``.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..catalog.schemas import ListResponse, QueryParams, QueryResult
from ..errors import UpstreamError


logger = logging.getLogger(__name__)


class CatalogApiClient:
    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> "CatalogApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def query(self, params: QueryParams) -> QueryResult:
        query = {"start": params.offset, "size": params.limit}
        if params.search_term:
            query["globalFilter"] = params.search_term

        try:
            response = await self._client.get("/api/pokemon", params=query)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Failed to reach catalogue API: {exc}") from exc

        url = str(response.request.url)
        if response.status_code != 200:
            raise UpstreamError(
                f"Catalogue API returned HTTP {response.status_code}: {_error_message(response)}",
                url=url,
                status_code=response.status_code,
            )
        try:
            return ListResponse.model_validate(response.json()).to_result()
        except ValueError as exc:
            raise UpstreamError(f"Malformed catalogue response: {exc}", url=url) from exc


def _error_message(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except (ValueError, AttributeError):
        return response.text
    if isinstance(detail, dict):
        return str(detail.get("error") or detail.get("message") or detail)
    return str(detail)
