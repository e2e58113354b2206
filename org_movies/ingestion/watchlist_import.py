from __future__ import annotations

import logging
import re
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from functools import partial
from pathlib import Path
from queue import Empty, Queue
from threading import Event
from typing import TYPE_CHECKING, Iterable

from org_movies.integrations.imdb.urls import MalformedImdbUrlError, extract_imdb_id
from org_movies.integrations.omdb.client import OmdbClientError, OmdbNetworkError
from org_movies.models.movies import MovieRecord
from org_movies.outline.document import OutlineFileError, append_nodes_to_file
from org_movies.outline.node import DEFAULT_HEADING_LEVEL, format_movie_node, validate_heading_level

if TYPE_CHECKING:
    from org_movies.integrations.omdb.client import OmdbClient

logger = logging.getLogger(__name__)

# First http(s) URL that follows a comma, optionally quoted. Other columns are ignored.
_WATCHLIST_URL_RE = re.compile(r',\s*"?(https?://[^,"\s]+)')

DEFAULT_CONCURRENCY = 5

_ROW_ERRORS = (MalformedImdbUrlError, OmdbClientError)


class FailurePolicy(str, Enum):
    COLLECT = "collect"  # record and log each failed row
    IGNORE = "ignore"  # record without logging
    ABORT = "abort"  # stop the batch at the first failed row


@dataclass(frozen=True)
class WatchlistRow:
    line_number: int
    url: str


@dataclass(frozen=True)
class ImportFailure:
    line_number: int
    url: str
    error: BaseException

    @property
    def message(self) -> str:
        return f"line {self.line_number}: {self.url}: {self.error}"


@dataclass
class ImportSummary:
    attempted: int = 0
    imported: int = 0
    skipped: int = 0
    failures: list[ImportFailure] = field(default_factory=list)
    nodes: list[str] = field(default_factory=list)


class WatchlistImportAborted(RuntimeError):
    def __init__(self, failure: ImportFailure, summary: ImportSummary) -> None:
        super().__init__(f"Watchlist import aborted at {failure.message}")
        self.failure = failure
        self.summary = summary


def scan_watchlist_urls(lines: Iterable[str]) -> list[WatchlistRow]:
    rows: list[WatchlistRow] = []
    for line_number, line in enumerate(lines, start=1):
        match = _WATCHLIST_URL_RE.search(line)
        if not match:
            continue
        rows.append(WatchlistRow(line_number=line_number, url=match.group(1)))
    return rows


def read_watchlist_urls(path: str | Path) -> list[WatchlistRow]:
    path = Path(path)
    try:
        with path.open(encoding="utf-8-sig", newline="") as f:
            return scan_watchlist_urls(f)
    except (OSError, UnicodeDecodeError) as exc:
        raise OutlineFileError(f"Unable to read watchlist {path}: {exc}", path=path) from exc


def _push_result(results: Queue, index: int, record: MovieRecord) -> None:
    results.put((index, record, None))


def _push_error(results: Queue, index: int, error: BaseException) -> None:
    results.put((index, None, error))


def import_watchlist(
    csv_path: str | Path,
    target_path: str | Path,
    client: "OmdbClient",
    *,
    level: int = DEFAULT_HEADING_LEVEL,
    concurrency: int = DEFAULT_CONCURRENCY,
    failure_policy: FailurePolicy = FailurePolicy.COLLECT,
    timeout_seconds: float | None = None,
    cancel_event: Event | None = None,
    today: date | None = None,
) -> ImportSummary:
    """
    Import every IMDb URL in a CSV watchlist into an Org file.

    At most `concurrency` lookups are in flight at once, issued through
    `client.fetch_movie_async`. Their callbacks push results onto a queue that the
    calling thread drains; completed rows wait in a reorder buffer until every
    earlier row has resolved, so nodes are appended to `target_path` and failures
    are reported in CSV row order. See `FailurePolicy` for how the batch reacts to
    a failed row.

    `cancel_event` and `timeout_seconds` stop rows that have not been sent yet and
    rows still queued on the client's pool. A request already on the wire runs to
    completion (bounded by the client's per-request timeout); its result is
    discarded.
    """

    if concurrency < 1:
        raise ValueError("concurrency must be at least 1.")
    validate_heading_level(level)

    rows = read_watchlist_urls(csv_path)
    today = today or date.today()
    summary = ImportSummary()
    logger.info("Importing %d watchlist row(s) from %s into %s", len(rows), csv_path, target_path)
    if not rows:
        return summary

    deadline = time.monotonic() + timeout_seconds if timeout_seconds is not None else None
    results: Queue[tuple[int, MovieRecord | None, BaseException | None]] = Queue()
    futures: dict[int, Future] = {}
    outcomes: dict[int, tuple[str | None, ImportFailure | None]] = {}
    next_submit = 0
    next_flush = 0
    in_flight = 0

    def resolve(index: int, node: str | None, error: BaseException | None = None) -> None:
        row = rows[index]
        summary.attempted += 1
        failure = None
        if error is not None:
            failure = ImportFailure(line_number=row.line_number, url=row.url, error=error)
        elif node is None:
            summary.skipped += 1
        outcomes[index] = (node, failure)

    def submit_more() -> None:
        nonlocal next_submit, in_flight
        while in_flight < concurrency and next_submit < len(rows):
            index = next_submit
            next_submit += 1
            if cancel_event is not None and cancel_event.is_set():
                resolve(index, None)
                continue
            try:
                imdb_id = extract_imdb_id(rows[index].url)
            except MalformedImdbUrlError as exc:
                resolve(index, None, exc)
                continue
            futures[index] = client.fetch_movie_async(
                imdb_id,
                partial(_push_result, results, index),
                partial(_push_error, results, index),
            )
            in_flight += 1

    def flush() -> None:
        nonlocal next_flush
        ready: list[str] = []
        try:
            while next_flush in outcomes:
                node, failure = outcomes.pop(next_flush)
                next_flush += 1
                if failure is not None:
                    summary.failures.append(failure)
                    if failure_policy is not FailurePolicy.IGNORE:
                        logger.warning("Watchlist row failed: %s", failure.message)
                    if failure_policy is FailurePolicy.ABORT:
                        if cancel_event is not None:
                            cancel_event.set()
                        raise WatchlistImportAborted(failure, summary) from failure.error
                elif node is not None:
                    ready.append(node)
        finally:
            if ready:
                append_nodes_to_file(target_path, ready)
                summary.nodes.extend(ready)
                summary.imported += len(ready)

    def expire() -> None:
        logger.warning("Watchlist import timed out after %ss", timeout_seconds)
        for index in range(next_flush, len(rows)):
            if index in outcomes:
                continue
            fut = futures.get(index)
            if fut is not None:
                fut.cancel()
            resolve(index, None, OmdbNetworkError(f"Watchlist import timed out after {timeout_seconds}s."))

    try:
        submit_more()
        flush()
        while next_flush < len(rows):
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                index, record, error = results.get(timeout=remaining)
            except Empty:
                expire()
                flush()
                break

            in_flight -= 1
            if error is not None and not isinstance(error, _ROW_ERRORS):
                raise error
            node = format_movie_node(record, level, today=today) if record is not None else None
            resolve(index, node, error)
            submit_more()
            flush()
    finally:
        for fut in futures.values():
            fut.cancel()

    logger.info(
        "Watchlist import finished: attempted=%d imported=%d skipped=%d failed=%d",
        summary.attempted,
        summary.imported,
        summary.skipped,
        len(summary.failures),
    )
    return summary
