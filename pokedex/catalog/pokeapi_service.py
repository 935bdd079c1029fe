"""
PokeAPI integration for the catalogue.  ``PokeApiClient`` wraps the
handful of public endpoints the service needs:

* ``fetch_page()`` — one page of ``/pokemon`` (``limit``/``offset``).
* ``fetch_by_name()`` — the full ``/pokemon/{name}`` record.
* ``fetch_secondary_list()`` — one page of ``/evolution-trigger``.
* ``fetch_evolution_trigger()`` — a single trigger by name.

Every call is a single attempt: no retries and no caching here.  The
catalogue cache in ``cache.py`` decides what to do with failures.  Only
the Python standard library is used for HTTP requests.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Optional

from pydantic import ValidationError as SchemaError

from ..errors import NotFoundError, UpstreamError
from .schemas import CatalogPage, DetailRecord, EvolutionTrigger, SecondaryPage


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://pokeapi.co/api/v2"


def _http_get_json(url: str, timeout: float = 10, user_agent: Optional[str] = None) -> dict:
    """Perform an HTTP GET and return the parsed JSON body.

    Raises ``NotFoundError`` on a 404, ``UpstreamError`` on any other
    non-success status, on transport failures and on bodies that are
    not a JSON object.
    """
    headers = {'Accept': 'application/json'}
    if user_agent:
        headers['User-Agent'] = user_agent
    request = urllib.request.Request(url, headers=headers)
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            status = getattr(response, 'status', 200)
            if not 200 <= status < 300:
                logger.warning("PokeAPI request to %s returned status %s", url, status)
                raise UpstreamError(
                    f"Upstream returned HTTP {status}", url=url, status_code=status
                )
            raw = response.read().decode('utf-8', errors='replace')
    except urllib.error.HTTPError as exc:
        if exc.code == 404:
            raise NotFoundError("Resource not found upstream", url=url, status_code=404) from exc
        logger.warning("PokeAPI request to %s returned status %s", url, exc.code)
        raise UpstreamError(
            f"Upstream returned HTTP {exc.code}: {exc.reason}", url=url, status_code=exc.code
        ) from exc
    except (urllib.error.URLError, OSError) as exc:
        logger.error("Error fetching %s: %s", url, exc)
        raise UpstreamError(f"Could not reach upstream: {exc}", url=url) from exc

    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise UpstreamError("Upstream returned invalid JSON", url=url) from exc
    if not isinstance(data, dict):
        raise UpstreamError("Upstream returned an unexpected JSON document", url=url)
    return data


class PokeApiClient:
    """Stateless client for the public PokeAPI."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10,
        user_agent: Optional[str] = None,
    ) -> None:
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.user_agent = user_agent

    def _get(self, path: str, **params: int) -> dict:
        url = f"{self.base_url}/{path}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"
        logger.debug("GET %s", url)
        return _http_get_json(url, timeout=self.timeout, user_agent=self.user_agent)

    def _resource_path(self, collection: str, name: str) -> str:
        key = (name or '').strip().lower()
        if not key:
            raise NotFoundError(f"Empty {collection} name")
        return f"{collection}/{urllib.parse.quote(key)}"

    def fetch_page(self, limit: int, offset: int) -> CatalogPage:
        data = self._get('pokemon', limit=limit, offset=offset)
        try:
            return CatalogPage.model_validate(data)
        except SchemaError as exc:
            raise UpstreamError(f"Malformed Pokemon page: {exc}") from exc

    def fetch_by_name(self, name: str) -> DetailRecord:
        """Return the full record for ``name`` (looked up lowercased)."""
        data = self._get(self._resource_path('pokemon', name))
        try:
            return DetailRecord.from_payload(data)
        except SchemaError as exc:
            raise UpstreamError(f"Malformed Pokemon record for {name}: {exc}") from exc

    def fetch_secondary_list(self, limit: int, offset: int) -> SecondaryPage:
        data = self._get('evolution-trigger', limit=limit, offset=offset)
        try:
            return SecondaryPage.model_validate(data)
        except SchemaError as exc:
            raise UpstreamError(f"Malformed evolution trigger page: {exc}") from exc

    def fetch_evolution_trigger(self, name: str) -> EvolutionTrigger:
        data = self._get(self._resource_path('evolution-trigger', name))
        try:
            return EvolutionTrigger.from_payload(data)
        except SchemaError as exc:
            raise UpstreamError(f"Malformed evolution trigger {name}: {exc}") from exc
