"""Helpers for mirroring the active search term into the page URL."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

SEARCH_PARAM = "search"


def read_search_param(url: str) -> str:
    """Return the trimmed ``search`` query parameter of ``url`` ('' if absent)."""
    for key, value in parse_qsl(urlsplit(url).query, keep_blank_values=True):
        if key == SEARCH_PARAM:
            return value.strip()
    return ""


def set_search_param(url: str, term: str) -> str:
    """Return ``url`` with ``search`` set to ``term``, or removed when it is empty.

    Other query parameters are kept in their original order.
    """
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != SEARCH_PARAM]
    term = (term or "").strip()
    if term:
        query.append((SEARCH_PARAM, term))
    return urlunsplit(parts._replace(query=urlencode(query)))
