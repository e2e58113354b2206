"""
OMDb integration client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from org_movies.integrations.omdb.client import (
        OmdbApiError,
        OmdbClient,
        OmdbClientError,
        OmdbHttpError,
        OmdbMalformedResponseError,
        OmdbNetworkError,
    )

__all__ = [
    "OmdbApiError",
    "OmdbClient",
    "OmdbClientError",
    "OmdbHttpError",
    "OmdbMalformedResponseError",
    "OmdbNetworkError",
]


def __getattr__(name: str):
    if name in __all__:
        from org_movies.integrations.omdb import client

        return getattr(client, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
