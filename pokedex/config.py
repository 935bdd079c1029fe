"""Application settings.

Values come from environment variables prefixed with ``POKEDEX_`` (or a
local ``.env`` file), falling back to the defaults below::

    POKEDEX_API_BASE_URL=https://pokeapi.co/api/v2
    POKEDEX_CATALOG_TTL_SECONDS=300
    POKEDEX_LOG_LEVEL=DEBUG
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="POKEDEX_",
        env_file=".env",
        extra="ignore",
    )

    # Upstream PokeAPI
    api_base_url: str = "https://pokeapi.co/api/v2"
    request_timeout: float = Field(default=10.0, gt=0)
    user_agent: str = "pokedex-catalog/1.0 (+https://pokeapi.co)"

    # Catalogue cache: one call with a large limit pulls the whole listing
    catalog_ttl_seconds: float = Field(default=300.0, ge=0)
    catalog_fetch_limit: int = Field(default=1500, ge=1)

    # Pagination
    default_page_size: int = Field(default=20, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    trigger_page_size: int = Field(default=5, ge=1)

    # Browser-side list controller
    search_debounce_seconds: float = Field(default=0.3, ge=0)

    log_level: LogLevel = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
