"""
IMDb URL helpers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from org_movies.integrations.imdb.urls import (
        MalformedImdbUrlError,
        extract_imdb_id,
    )

__all__ = [
    "MalformedImdbUrlError",
    "extract_imdb_id",
]


def __getattr__(name: str):
    if name in __all__:
        from org_movies.integrations.imdb import urls

        return getattr(urls, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
