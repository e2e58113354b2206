"""
Domain models shared across scripts and services.
"""

from org_movies.models.movies import MovieRecord

__all__ = [
    "MovieRecord",
]
