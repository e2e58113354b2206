from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

# OMDb fills unknown values with this placeholder instead of omitting the key.
OMDB_MISSING_VALUE = "N/A"


def _as_field(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not stripped or stripped == OMDB_MISSING_VALUE:
        return None
    return stripped


@dataclass(frozen=True)
class MovieRecord:
    """
    Movie metadata as returned by OMDb for a single title.

    Every field is optional: OMDb may omit a key or report it as "N/A", and both
    map to `None`. Use the `*_or_empty` helpers where an empty string is wanted.
    """

    title: str | None = None
    year: str | None = None
    genre: str | None = None
    poster: str | None = None
    director: str | None = None
    imdb_rating: str | None = None  # fetched, never rendered
    imdb_id: str | None = None

    @classmethod
    def from_omdb_payload(cls, payload: Mapping[str, Any]) -> "MovieRecord":
        return cls(
            title=_as_field(payload.get("Title")),
            year=_as_field(payload.get("Year")),
            genre=_as_field(payload.get("Genre")),
            poster=_as_field(payload.get("Poster")),
            director=_as_field(payload.get("Director")),
            imdb_rating=_as_field(payload.get("imdbRating")),
            imdb_id=_as_field(payload.get("imdbID")),
        )

    @property
    def title_or_empty(self) -> str:
        return self.title or ""

    @property
    def year_or_empty(self) -> str:
        return self.year or ""

    @property
    def poster_or_empty(self) -> str:
        return self.poster or ""

    @property
    def director_or_empty(self) -> str:
        return self.director or ""
