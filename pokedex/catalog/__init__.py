"""
Catalog package for the Pokédex API.

This package contains the PokeAPI client, the process-wide catalogue
cache, the list query service and the route definitions that expose
them.  The listing endpoint serves a paginated, name-filterable slice of
the full catalogue; detail and evolution trigger endpoints go straight
to PokeAPI.
"""

from .router import router as catalog_router  # noqa: F401
