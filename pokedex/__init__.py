"""Pokédex catalog browser: cached PokeAPI listing, search and detail views."""

__version__ = "1.0.0"
