from __future__ import annotations

from datetime import date

from org_movies.models.movies import MovieRecord

DEFAULT_HEADING_LEVEL = 2

# Other tooling reads these keys; keep spelling and order stable.
PROPERTY_KEYS = ("YEAR", "ADDED", "POSTER", "DIRECTOR")


def genre_tags(genre: str | None) -> str:
    """
    Turn an OMDb genre string into an Org tag list.

    "Action, Sci-Fi, Film-Noir" -> ":Action:Sci_Fi:Film_Noir:"
    """

    tags = [part.strip().replace("-", "_") for part in (genre or "").split(",")]
    tags = [t for t in tags if t]
    if not tags:
        return ""
    return ":" + ":".join(tags) + ":"


def org_inactive_date(value: date) -> str:
    return f"[{value.isoformat()}]"


def validate_heading_level(level: int) -> int:
    if isinstance(level, bool) or not isinstance(level, int) or level < 1:
        raise ValueError(f"Heading level must be a positive integer, got {level!r}.")
    return level


def format_movie_node(record: MovieRecord, level: int = DEFAULT_HEADING_LEVEL, *, today: date | None = None) -> str:
    stars = "*" * validate_heading_level(level)
    parts = [part for part in (stars, record.title_or_empty, genre_tags(record.genre)) if part]
    # Org needs a space after the stars even when the heading text is empty.
    heading = " ".join(parts) if len(parts) > 1 else f"{stars} "

    added = org_inactive_date(today or date.today())
    properties = {
        "YEAR": record.year_or_empty,
        "ADDED": added,
        "POSTER": record.poster_or_empty,
        "DIRECTOR": record.director_or_empty,
    }

    lines = [heading, ":PROPERTIES:"]
    lines.extend(f":{key}: {properties[key]}" for key in PROPERTY_KEYS)
    lines.append(":END:")
    return "\n".join(lines) + "\n\n"
