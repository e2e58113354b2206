"""
Shared org-movies library code.

This package holds the code reused by the command-line entrypoints in `scripts/`:
- IMDb URL parsing and the OMDb metadata client (`integrations/`)
- Org outline node rendering and document I/O (`outline/`)
- CSV watchlist bulk import (`ingestion/`)

Entrypoints should live outside this package and import from `org_movies`
rather than the other way around.
"""
