# pokedex/main.py
import logging
from typing import Optional

from fastapi import FastAPI

from . import __version__
from .catalog import catalog_router
from .catalog.cache import CatalogCache
from .catalog.pokeapi_service import PokeApiClient
from .catalog.store import CatalogQueryService
from .config import Settings, get_settings


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # basicConfig is a no-op once handlers exist; the level still applies.
    logging.getLogger().setLevel(level)


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[PokeApiClient] = None,
) -> FastAPI:
    """Build the API with one catalogue cache shared by every request."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    client = client or PokeApiClient(
        base_url=settings.api_base_url,
        timeout=settings.request_timeout,
        user_agent=settings.user_agent,
    )
    cache = CatalogCache(
        client,
        ttl=settings.catalog_ttl_seconds,
        fetch_limit=settings.catalog_fetch_limit,
    )

    app = FastAPI(
        title="Pokédex",
        description=(
            "Browse and search the Pokémon catalogue from PokeAPI, "
            "with a cached, paginated listing and on-demand detail records."
        ),
        version=__version__,
    )
    app.state.settings = settings
    app.state.client = client
    app.state.cache = cache
    app.state.query_service = CatalogQueryService(cache)

    # 🔹 Basic route for a quick liveness check
    @app.get("/")
    def health_check():
        return {"status": "ok", "message": "Pokédex API live 🚀"}

    app.include_router(catalog_router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    logger.info("Starting Pokédex API against %s", settings.api_base_url)
    uvicorn.run(app, host="127.0.0.1", port=8000, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
