from __future__ import annotations

import shutil
import threading
from datetime import date
from pathlib import Path

import pytest

from org_movies.config import OmdbConfig
from org_movies.ingestion.watchlist_import import (
    FailurePolicy,
    WatchlistImportAborted,
    WatchlistRow,
    import_watchlist,
    read_watchlist_urls,
    scan_watchlist_urls,
)
from org_movies.integrations.imdb.urls import MalformedImdbUrlError
from org_movies.integrations.omdb.client import OmdbClient, OmdbHttpError, OmdbNetworkError
from org_movies.models.movies import MovieRecord
from org_movies.outline.document import OutlineFileError

TODAY = date(2024, 3, 9)

TITLES = {
    "tt1160419": ("Dune", "Action, Adventure, Drama"),
    "tt0083658": ("Blade Runner", "Action, Drama, Sci-Fi"),
    "tt0043014": ("Sunset Boulevard", "Drama, Film-Noir"),
}


def _fixture_csv() -> Path:
    repo_root = Path(__file__).resolve().parents[2]
    return repo_root / "tests" / "fixtures" / "omdb" / "watchlist_sample.csv"


def _headings(text: str) -> list[str]:
    return [line for line in text.splitlines() if line.startswith("** ")]


class _FakeClient(OmdbClient):
    """OmdbClient whose lookups answer from TITLES, optionally failing or delaying ids."""

    def __init__(
        self,
        *,
        failures: dict[str, Exception] | None = None,
        wait_for: dict[str, threading.Event] | None = None,
        signal: dict[str, threading.Event] | None = None,
    ) -> None:
        super().__init__(OmdbConfig(api_key="test"))
        self._failures = failures or {}
        self._wait_for = wait_for or {}
        self._signal = signal or {}
        self.submitted: list[str] = []
        self.completed: list[str] = []
        self.max_active = 0
        self._active = 0
        self._lock = threading.Lock()

    def fetch_movie_async(self, imdb_id, on_result, on_error=None):  # noqa: ANN001, ANN201
        self.submitted.append(imdb_id)
        return super().fetch_movie_async(imdb_id, on_result, on_error)

    def fetch_movie(self, imdb_id: str) -> MovieRecord:
        with self._lock:
            self._active += 1
            self.max_active = max(self.max_active, self._active)
        gate = self._wait_for.get(imdb_id)
        if gate is not None:
            assert gate.wait(timeout=5), f"gate for {imdb_id} never opened"
        try:
            if imdb_id in self._failures:
                raise self._failures[imdb_id]
            title, genre = TITLES[imdb_id]
            return MovieRecord.from_omdb_payload({"Title": title, "Genre": genre, "imdbID": imdb_id})
        finally:
            with self._lock:
                self._active -= 1
                self.completed.append(imdb_id)
            done = self._signal.get(imdb_id)
            if done is not None:
                done.set()



def test_scan_watchlist_urls_takes_first_url_after_comma() -> None:
    rows = scan_watchlist_urls(
        [
            "Position,Const,URL\n",
            "1,tt1160419,https://www.imdb.com/title/tt1160419/,https://example.com/other\n",
            'x,"https://www.imdb.com/title/tt0083658/"\n',
            "no url on this row\n",
            "https://www.imdb.com/title/tt0043014/ without a leading comma\n",
        ]
    )

    assert rows == [
        WatchlistRow(line_number=2, url="https://www.imdb.com/title/tt1160419/"),
        WatchlistRow(line_number=3, url="https://www.imdb.com/title/tt0083658/"),
    ]


def test_read_watchlist_urls_from_export() -> None:
    rows = read_watchlist_urls(_fixture_csv())

    assert [r.line_number for r in rows] == [2, 3, 4]
    assert [r.url for r in rows] == [
        "https://www.imdb.com/title/tt1160419/",
        "https://www.imdb.com/title/tt0083658/",
        "https://www.imdb.com/title/tt0043014/",
    ]


def test_read_watchlist_urls_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(OutlineFileError):
        read_watchlist_urls(tmp_path / "nope.csv")


def test_import_watchlist_appends_nodes_in_row_order(tmp_path: Path) -> None:
    csv_path = tmp_path / "watchlist.csv"
    shutil.copy(_fixture_csv(), csv_path)
    target = tmp_path / "movies.org"
    target.write_text("* Movies\n", encoding="utf-8")

    summary = import_watchlist(csv_path, target, _FakeClient(), concurrency=3, today=TODAY)

    assert summary.attempted == 3
    assert summary.imported == 3
    assert summary.failures == []
    text = target.read_text(encoding="utf-8")
    assert text.startswith("* Movies\n** Dune :Action:Adventure:Drama:\n")
    assert _headings(text) == [
        "** Dune :Action:Adventure:Drama:",
        "** Blade Runner :Action:Drama:Sci_Fi:",
        "** Sunset Boulevard :Drama:Film_Noir:",
    ]
    assert text.count(":ADDED: [2024-03-09]") == 3
    assert "".join(summary.nodes) == text[len("* Movies\n") :]


def test_import_watchlist_preserves_order_when_responses_arrive_out_of_order(tmp_path: Path) -> None:
    csv_path = tmp_path / "watchlist.csv"
    shutil.copy(_fixture_csv(), csv_path)
    target = tmp_path / "movies.org"

    # The last row answers first; the first two rows wait for it.
    last_done = threading.Event()
    client = _FakeClient(
        wait_for={"tt1160419": last_done, "tt0083658": last_done},
        signal={"tt0043014": last_done},
    )

    summary = import_watchlist(csv_path, target, client, concurrency=3, today=TODAY)

    assert client.completed[0] == "tt0043014"
    assert summary.imported == 3
    assert _headings(target.read_text(encoding="utf-8")) == [
        "** Dune :Action:Adventure:Drama:",
        "** Blade Runner :Action:Drama:Sci_Fi:",
        "** Sunset Boulevard :Drama:Film_Noir:",
    ]


def test_import_watchlist_skips_rows_without_url_and_collects_malformed(tmp_path: Path) -> None:
    csv_path = tmp_path / "watchlist.csv"
    csv_path.write_text(
        "Position,Const,Title,URL\n"
        "1,tt1160419,Dune,https://www.imdb.com/title/tt1160419/\n"
        "2,,just a note without a link\n"
        "3,nm0898288,Villeneuve,https://www.imdb.com/name/nm0898288/\n"
        "4,tt0043014,Sunset Boulevard,https://www.imdb.com/title/tt0043014/\n",
        encoding="utf-8",
    )
    target = tmp_path / "movies.org"

    summary = import_watchlist(csv_path, target, _FakeClient(), concurrency=2, today=TODAY)

    assert summary.attempted == 3
    assert summary.imported == 2
    assert len(summary.failures) == 1
    failure = summary.failures[0]
    assert failure.line_number == 4
    assert failure.url == "https://www.imdb.com/name/nm0898288/"
    assert isinstance(failure.error, MalformedImdbUrlError)
    assert _headings(target.read_text(encoding="utf-8")) == [
        "** Dune :Action:Adventure:Drama:",
        "** Sunset Boulevard :Drama:Film_Noir:",
    ]


def test_import_watchlist_collects_fetch_errors_without_blocking_later_rows(tmp_path: Path) -> None:
    csv_path = tmp_path / "watchlist.csv"
    shutil.copy(_fixture_csv(), csv_path)
    target = tmp_path / "movies.org"
    client = _FakeClient(failures={"tt0083658": OmdbHttpError("HTTP 500", status_code=500)})

    summary = import_watchlist(csv_path, target, client, today=TODAY)

    assert summary.imported == 2
    assert [f.line_number for f in summary.failures] == [3]
    assert isinstance(summary.failures[0].error, OmdbHttpError)
    assert "line 3" in summary.failures[0].message
    assert _headings(target.read_text(encoding="utf-8")) == [
        "** Dune :Action:Adventure:Drama:",
        "** Sunset Boulevard :Drama:Film_Noir:",
    ]


def test_import_watchlist_ignore_policy_records_without_logging(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    csv_path = tmp_path / "watchlist.csv"
    shutil.copy(_fixture_csv(), csv_path)
    client = _FakeClient(failures={"tt0083658": OmdbNetworkError("down")})

    with caplog.at_level("WARNING", logger="org_movies.ingestion.watchlist_import"):
        summary = import_watchlist(
            csv_path,
            tmp_path / "movies.org",
            client,
            failure_policy=FailurePolicy.IGNORE,
            today=TODAY,
        )

    assert len(summary.failures) == 1
    assert "Watchlist row failed" not in caplog.text


def test_import_watchlist_collect_policy_logs_failures(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    csv_path = tmp_path / "watchlist.csv"
    shutil.copy(_fixture_csv(), csv_path)
    client = _FakeClient(failures={"tt0083658": OmdbNetworkError("down")})

    with caplog.at_level("WARNING", logger="org_movies.ingestion.watchlist_import"):
        import_watchlist(csv_path, tmp_path / "movies.org", client, today=TODAY)

    assert "Watchlist row failed: line 3" in caplog.text


def test_import_watchlist_abort_policy_stops_and_keeps_earlier_rows(tmp_path: Path) -> None:
    csv_path = tmp_path / "watchlist.csv"
    shutil.copy(_fixture_csv(), csv_path)
    target = tmp_path / "movies.org"
    client = _FakeClient(failures={"tt0083658": OmdbHttpError("HTTP 404", status_code=404)})
    cancel = threading.Event()

    with pytest.raises(WatchlistImportAborted) as excinfo:
        import_watchlist(
            csv_path,
            target,
            client,
            concurrency=3,
            failure_policy=FailurePolicy.ABORT,
            cancel_event=cancel,
            today=TODAY,
        )

    assert cancel.is_set()
    assert excinfo.value.failure.line_number == 3
    assert excinfo.value.summary.imported == 1
    assert isinstance(excinfo.value.__cause__, OmdbHttpError)
    assert _headings(target.read_text(encoding="utf-8")) == ["** Dune :Action:Adventure:Drama:"]


def test_import_watchlist_cancel_event_skips_rows(tmp_path: Path) -> None:
    csv_path = tmp_path / "watchlist.csv"
    shutil.copy(_fixture_csv(), csv_path)
    target = tmp_path / "movies.org"
    cancel = threading.Event()
    cancel.set()
    client = _FakeClient()

    summary = import_watchlist(csv_path, target, client, cancel_event=cancel, today=TODAY)

    assert summary.attempted == 3
    assert summary.skipped == 3
    assert summary.imported == 0
    assert client.submitted == []
    assert not target.exists()


def test_import_watchlist_timeout_records_unfinished_rows(tmp_path: Path) -> None:
    csv_path = tmp_path / "watchlist.csv"
    shutil.copy(_fixture_csv(), csv_path)
    target = tmp_path / "movies.org"
    never = threading.Event()
    client = _FakeClient(wait_for={"tt0083658": never})

    try:
        summary = import_watchlist(
            csv_path,
            target,
            client,
            concurrency=3,
            timeout_seconds=0.5,
            today=TODAY,
        )
    finally:
        never.set()

    assert summary.imported == 2
    assert [f.line_number for f in summary.failures] == [3]
    assert isinstance(summary.failures[0].error, OmdbNetworkError)
    assert _headings(target.read_text(encoding="utf-8")) == [
        "** Dune :Action:Adventure:Drama:",
        "** Sunset Boulevard :Drama:Film_Noir:",
    ]


def test_import_watchlist_empty_csv_writes_nothing(tmp_path: Path) -> None:
    csv_path = tmp_path / "watchlist.csv"
    csv_path.write_text("Position,Const,URL\n", encoding="utf-8")
    target = tmp_path / "movies.org"

    summary = import_watchlist(csv_path, target, _FakeClient(), today=TODAY)

    assert summary.attempted == 0
    assert not target.exists()


def test_import_watchlist_rejects_bad_concurrency(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        import_watchlist(tmp_path / "a.csv", tmp_path / "b.org", _FakeClient(), concurrency=0)


def test_import_watchlist_fetches_through_client_async_in_row_order(tmp_path: Path) -> None:
    csv_path = tmp_path / "watchlist.csv"
    shutil.copy(_fixture_csv(), csv_path)
    client = _FakeClient()

    import_watchlist(csv_path, tmp_path / "movies.org", client, today=TODAY)

    assert client.submitted == ["tt1160419", "tt0083658", "tt0043014"]


def test_import_watchlist_keeps_at_most_concurrency_requests_in_flight(tmp_path: Path) -> None:
    csv_path = tmp_path / "watchlist.csv"
    shutil.copy(_fixture_csv(), csv_path)
    client = _FakeClient()

    summary = import_watchlist(csv_path, tmp_path / "movies.org", client, concurrency=1, today=TODAY)

    assert summary.imported == 3
    assert client.max_active == 1


def test_import_watchlist_reports_failures_in_row_order(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    csv_path = tmp_path / "watchlist.csv"
    shutil.copy(_fixture_csv(), csv_path)
    # Line 4 fails first; line 2 fails only after it.
    last_done = threading.Event()
    client = _FakeClient(
        failures={"tt1160419": OmdbHttpError("HTTP 500", status_code=500), "tt0043014": OmdbNetworkError("down")},
        wait_for={"tt1160419": last_done},
        signal={"tt0043014": last_done},
    )

    with caplog.at_level("WARNING", logger="org_movies.ingestion.watchlist_import"):
        summary = import_watchlist(csv_path, tmp_path / "movies.org", client, concurrency=3, today=TODAY)

    assert client.completed[0] == "tt0043014"
    assert [f.line_number for f in summary.failures] == [2, 4]
    warnings = [r.getMessage() for r in caplog.records if "Watchlist row failed" in r.getMessage()]
    assert [w.split(":")[1].strip() for w in warnings] == ["line 2", "line 4"]


def test_import_watchlist_abort_ignores_later_row_that_failed_first(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    csv_path = tmp_path / "watchlist.csv"
    shutil.copy(_fixture_csv(), csv_path)
    target = tmp_path / "movies.org"
    last_done = threading.Event()
    client = _FakeClient(
        failures={"tt1160419": OmdbHttpError("HTTP 404", status_code=404), "tt0043014": OmdbNetworkError("down")},
        wait_for={"tt1160419": last_done},
        signal={"tt0043014": last_done},
    )

    with caplog.at_level("WARNING", logger="org_movies.ingestion.watchlist_import"):
        with pytest.raises(WatchlistImportAborted) as excinfo:
            import_watchlist(
                csv_path,
                target,
                client,
                concurrency=3,
                failure_policy=FailurePolicy.ABORT,
                today=TODAY,
            )

    assert client.completed[0] == "tt0043014"
    assert excinfo.value.failure.line_number == 2
    assert [f.line_number for f in excinfo.value.summary.failures] == [2]
    assert "line 2" in caplog.text
    assert "line 4" not in caplog.text
    assert not target.exists()


def test_import_watchlist_propagates_errors_outside_the_row_taxonomy(tmp_path: Path) -> None:
    csv_path = tmp_path / "watchlist.csv"
    shutil.copy(_fixture_csv(), csv_path)
    client = _FakeClient(failures={"tt0083658": KeyError("Title")})

    with pytest.raises(KeyError):
        import_watchlist(csv_path, tmp_path / "movies.org", client, concurrency=1, today=TODAY)
