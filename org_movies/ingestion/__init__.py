"""
Bulk import of watchlist exports into Org outline files.
"""

from org_movies.ingestion.watchlist_import import (
    FailurePolicy,
    ImportFailure,
    ImportSummary,
    WatchlistImportAborted,
    WatchlistRow,
    import_watchlist,
    read_watchlist_urls,
    scan_watchlist_urls,
)

__all__ = [
    "FailurePolicy",
    "ImportFailure",
    "ImportSummary",
    "WatchlistImportAborted",
    "WatchlistRow",
    "import_watchlist",
    "read_watchlist_urls",
    "scan_watchlist_urls",
]
