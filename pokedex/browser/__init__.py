"""
Browser-side state for the Pokédex page: the list controller behind the
table, the detail overlay and an async client for ``/api/pokemon``.
"""

from .api_client import CatalogApiClient  # noqa: F401
from .detail_overlay import DetailOverlay  # noqa: F401
from .list_controller import ListController  # noqa: F401
