"""
OMDb title metadata client.

Looks up a single title by IMDb id against `https://www.omdbapi.com/` and
normalizes the JSON object into a `MovieRecord`.

Automated tests for this module should never call the live OMDb endpoint. Pass a
fake `requests.Session` and validate the error mapping directly.
"""

from __future__ import annotations

import logging
import random
import time
from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Any, Callable
from urllib.parse import urlencode

import requests

from org_movies.config import OmdbConfig
from org_movies.integrations.imdb.urls import extract_imdb_id
from org_movies.models.movies import MovieRecord

logger = logging.getLogger(__name__)

DEFAULT_ASYNC_WORKERS = 5


class OmdbClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


class OmdbNetworkError(OmdbClientError):
    """The request never produced an HTTP response (connection error, timeout)."""


class OmdbHttpError(OmdbClientError):
    """OMDb answered with a non-2xx status."""


class OmdbMalformedResponseError(OmdbClientError):
    """The response body was not a JSON object."""


class OmdbApiError(OmdbClientError):
    """OMDb answered `{"Response": "False", "Error": ...}` (unknown id, bad key)."""


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or 500 <= status_code < 600


def _backoff_delay(attempt: int, retry_after: str | None = None) -> float:
    delay = 1.0 * (2**attempt)
    retry_after = (retry_after or "").strip()
    if retry_after.isdigit():
        delay = max(delay, float(retry_after))
    return delay + random.uniform(0.0, delay * 0.25)


class OmdbClient:
    def __init__(
        self,
        config: OmdbConfig,
        *,
        session: requests.Session | None = None,
        max_workers: int = DEFAULT_ASYNC_WORKERS,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = Lock()

    def __enter__(self) -> "OmdbClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
        self.session.close()

    def build_request_url(self, imdb_id: str) -> str:
        params = {"i": imdb_id, "apikey": self.config.api_key}
        return f"{self.config.base_url}?{urlencode(params)}"

    def _get(self, url: str) -> requests.Response:
        headers = {"accept": "application/json"}
        max_attempts = self.config.max_attempts

        for attempt in range(max_attempts):
            last_attempt = attempt >= max_attempts - 1
            try:
                resp = self.session.get(url, headers=headers, timeout=self.config.timeout_seconds)
            except requests.RequestException as exc:
                if not last_attempt:
                    logger.debug("OMDb request error (attempt %d/%d): %s", attempt + 1, max_attempts, exc)
                    time.sleep(_backoff_delay(attempt))
                    continue
                raise OmdbNetworkError(f"OMDb request failed: {exc}") from exc

            if 200 <= resp.status_code < 300:
                return resp

            if _is_retryable_status(resp.status_code) and not last_attempt:
                logger.debug("OMDb HTTP %d (attempt %d/%d), retrying", resp.status_code, attempt + 1, max_attempts)
                time.sleep(_backoff_delay(attempt, resp.headers.get("Retry-After")))
                continue

            raise OmdbHttpError(
                f"OMDb request failed with HTTP {resp.status_code}.",
                status_code=resp.status_code,
                body_snippet=(resp.text or "")[:400],
            )

        raise OmdbNetworkError("OMDb request failed (no response).")

    def fetch_payload(self, imdb_id: str) -> dict[str, Any]:
        resp = self._get(self.build_request_url(imdb_id))

        try:
            payload = resp.json()
        except ValueError as exc:
            raise OmdbMalformedResponseError(
                "OMDb returned non-JSON response.",
                status_code=resp.status_code,
                body_snippet=(resp.text or "")[:400],
            ) from exc

        if not isinstance(payload, dict):
            raise OmdbMalformedResponseError(
                "OMDb returned unexpected JSON shape (not an object).",
                status_code=resp.status_code,
            )

        if str(payload.get("Response", "True")) == "False":
            message = payload.get("Error") or "unknown error"
            raise OmdbApiError(f"OMDb error for {imdb_id}: {message}", status_code=resp.status_code)

        return payload

    def fetch_movie(self, imdb_id: str) -> MovieRecord:
        """Blocking lookup of a single title."""

        logger.debug("Fetching OMDb metadata for %s", imdb_id)
        return MovieRecord.from_omdb_payload(self.fetch_payload(imdb_id))

    def fetch_movie_by_url(self, url: str) -> MovieRecord:
        return self.fetch_movie(extract_imdb_id(url))

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="omdb")
            return self._executor

    def fetch_movie_async(
        self,
        imdb_id: str,
        on_result: Callable[[MovieRecord], None],
        on_error: Callable[[BaseException], None] | None = None,
    ) -> Future[MovieRecord]:
        """
        Look up a title on the client's worker pool without blocking the caller.

        `on_result` receives the record once the response arrives; failures go to
        `on_error` when given. The returned future also carries the outcome.
        """

        future = self._get_executor().submit(self.fetch_movie, imdb_id)

        def _dispatch(done: Future[MovieRecord]) -> None:
            if done.cancelled():
                return
            exc = done.exception()
            try:
                if exc is None:
                    on_result(done.result())
                elif on_error is not None:
                    on_error(exc)
                else:
                    logger.warning("OMDb lookup for %s failed: %s", imdb_id, exc)
            except Exception:
                logger.exception("OMDb callback for %s raised", imdb_id)

        future.add_done_callback(_dispatch)
        return future
