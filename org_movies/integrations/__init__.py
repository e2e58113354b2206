"""
External system integrations (IMDb, OMDb).

New external metadata clients should live under this namespace so they remain
decoupled from the command-line entrypoints in `scripts/`.
"""
