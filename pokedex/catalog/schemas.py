"""
Pydantic schema definitions for the catalog module.

Two families of models live here.  The first mirrors what PokeAPI sends
back (``CatalogPage``, the raw ``_PokemonPayload`` used to build a
``DetailRecord``, the evolution trigger payload) and is parsed strictly,
with explicit defaults for the optional parts such as missing sprites.
The second is what this service hands to its own clients: the
``QueryParams``/``QueryResult`` pair used by the query service and the
``ListResponse`` wire format of ``GET /api/pokemon``.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..errors import ValidationError


DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
STAT_CEILING = 255


def _id_from_url(url: str) -> str:
    """Return the last non-empty path segment of a PokeAPI resource URL."""
    parts = [p for p in (url or "").split("/") if p]
    return parts[-1] if parts else ""


class CatalogEntry(BaseModel):
    """A single listing row, kept verbatim from upstream.

    ``name`` is unique within a listing; ``url`` is an opaque pointer to
    the full record.  Entries are frozen so a cached catalogue can be
    shared between requests without defensive copies.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    url: str

    @property
    def id(self) -> str:
        return _id_from_url(self.url)

    @property
    def display_id(self) -> str:
        return f"#{self.id.zfill(3)}"


class CatalogPage(BaseModel):
    """One page of an upstream list endpoint (``/pokemon``, ``/evolution-trigger``)."""

    count: int
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[CatalogEntry] = Field(default_factory=list)


# The evolution trigger listing has exactly the same shape.
SecondaryPage = CatalogPage


class QueryParams(BaseModel):
    """Validated input of a single list query."""

    model_config = ConfigDict(frozen=True)

    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    search_term: str = ""

    @classmethod
    def from_raw(
        cls,
        start: Union[str, int, None] = None,
        size: Union[str, int, None] = None,
        global_filter: Optional[str] = None,
        default_size: int = DEFAULT_PAGE_SIZE,
        max_size: int = MAX_PAGE_SIZE,
    ) -> "QueryParams":
        """Build params from loosely typed query-string values.

        Out-of-range numbers are clamped rather than rejected: a negative
        ``start`` becomes 0 and ``size`` is pinned to ``[1, max_size]``.
        Only values that are not integers at all raise ``ValidationError``.
        """
        offset = _parse_int("start", start, 0)
        limit = _parse_int("size", size, default_size)
        max_size = min(max(1, max_size), MAX_PAGE_SIZE)
        return cls(
            offset=max(0, offset),
            limit=min(max_size, max(1, limit)),
            search_term=(global_filter or "").strip(),
        )


def _parse_int(field: str, value: Union[str, int, None], default: int) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"'{field}' must be an integer, got {value!r}")


class QueryResult(BaseModel):
    """A page of the (possibly filtered) catalogue plus its total size."""

    page: List[CatalogEntry] = Field(default_factory=list)
    total_count: int = 0

    @classmethod
    def empty(cls) -> "QueryResult":
        return cls(page=[], total_count=0)


class ListMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_row_count: int = Field(alias="totalRowCount")


class ListResponse(BaseModel):
    """Wire format of ``GET /api/pokemon``."""

    data: List[CatalogEntry]
    meta: ListMeta

    @classmethod
    def from_result(cls, result: QueryResult) -> "ListResponse":
        return cls(data=result.page, meta=ListMeta(total_row_count=result.total_count))

    def to_result(self) -> QueryResult:
        return QueryResult(page=self.data, total_count=self.meta.total_row_count)


# ---------------------------------------------------------------------------
# Detail record
#
# PokeAPI returns a large nested document for ``/pokemon/{name}``.  Only
# the parts shown in the detail view are modelled; everything else is
# ignored.  Sprites are frequently null, hence the defaults.

class _NamedResource(BaseModel):
    name: str
    url: str = ""


class _TypeSlot(BaseModel):
    slot: int = 0
    type: _NamedResource


class _StatSlot(BaseModel):
    base_stat: int = 0
    effort: int = 0
    stat: _NamedResource


class _Artwork(BaseModel):
    front_default: Optional[str] = None


class _OtherSprites(BaseModel):
    official_artwork: Optional[_Artwork] = Field(default=None, alias="official-artwork")


class _Sprites(BaseModel):
    front_default: Optional[str] = None
    other: Optional[_OtherSprites] = None


class _PokemonPayload(BaseModel):
    id: int
    name: str
    height: int = 0
    weight: int = 0
    sprites: Optional[_Sprites] = None
    types: List[_TypeSlot] = Field(default_factory=list)
    stats: List[_StatSlot] = Field(default_factory=list)


class StatValue(BaseModel):
    name: str
    base_stat: int

    @property
    def percent(self) -> float:
        # Stat bars are drawn against the highest possible base stat.
        return min(self.base_stat / STAT_CEILING * 100, 100.0)


class DetailRecord(BaseModel):
    """Full record for one Pokémon as shown in the detail overlay.

    ``height`` and ``weight`` keep upstream's units (decimetres and
    hectograms); ``height_m`` and ``weight_kg`` convert them for display.
    ``image_url`` prefers the official artwork, then the default sprite,
    and is ``None`` when neither exists.
    """

    id: int
    name: str
    height: int = 0
    weight: int = 0
    types: List[str] = Field(default_factory=list)
    stats: List[StatValue] = Field(default_factory=list)
    image_url: Optional[str] = None

    @property
    def display_id(self) -> str:
        return f"#{self.id:03d}"

    @property
    def height_m(self) -> float:
        return round(self.height / 10, 1)

    @property
    def weight_kg(self) -> float:
        return round(self.weight / 10, 1)

    @classmethod
    def from_payload(cls, data: dict) -> "DetailRecord":
        """Parse the raw ``/pokemon/{name}`` document.

        Raises ``pydantic.ValidationError`` when required fields (``id``,
        ``name``) are missing or have the wrong type.
        """
        raw = _PokemonPayload.model_validate(data)
        image_url = None
        sprites = raw.sprites
        if sprites is not None:
            other = sprites.other
            if other is not None and other.official_artwork is not None:
                image_url = other.official_artwork.front_default
            if not image_url:
                image_url = sprites.front_default
        return cls(
            id=raw.id,
            name=raw.name,
            height=raw.height,
            weight=raw.weight,
            types=[t.type.name for t in sorted(raw.types, key=lambda t: t.slot)],
            stats=[StatValue(name=s.stat.name, base_stat=s.base_stat) for s in raw.stats],
            image_url=image_url or None,
        )


class _LocalizedName(BaseModel):
    name: str
    language: _NamedResource


class _TriggerPayload(BaseModel):
    id: int
    name: str
    names: List[_LocalizedName] = Field(default_factory=list)
    pokemon_species: List[CatalogEntry] = Field(default_factory=list)


class EvolutionTrigger(BaseModel):
    """Detail of one evolution trigger (``level-up``, ``trade``...)."""

    id: int
    name: str
    # language code -> localized name
    names: Dict[str, str] = Field(default_factory=dict)
    pokemon_species: List[CatalogEntry] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, data: dict) -> "EvolutionTrigger":
        raw = _TriggerPayload.model_validate(data)
        return cls(
            id=raw.id,
            name=raw.name,
            names={n.language.name: n.name for n in raw.names},
            pokemon_species=raw.pokemon_species,
        )
