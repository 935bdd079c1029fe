# pokedex/errors.py
"""
Error hierarchy shared by the upstream client, the catalogue cache, the
HTTP routes and the browser-side controllers.

``UpstreamError`` covers anything that went wrong talking to PokeAPI
(transport failure, non-2xx status, unreadable body).  ``NotFoundError``
narrows it to a 404 for a single item.  ``ValidationError`` is raised
for query parameters that cannot be clamped into range.
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for every error raised by this package."""


class UpstreamError(CatalogError):
    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.url = url
        self.status_code = status_code


class NotFoundError(UpstreamError):
    """The upstream API reported that the requested item does not exist."""


class ValidationError(CatalogError):
    """Malformed query parameters."""


def as_catalog_error(exc: Exception) -> CatalogError:
    """Return ``exc`` unchanged if it is a ``CatalogError``, else wrap it."""
    if isinstance(exc, CatalogError):
        return exc
    wrapped = UpstreamError(f"Unexpected error: {exc!r}")
    wrapped.__cause__ = exc
    return wrapped
