"""
Runtime configuration for the OMDb client.

The API key and request settings are carried by an explicit `OmdbConfig` object
that callers build once (usually via `OmdbConfig.from_env()` after `load_env()`)
and pass into `OmdbClient`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

OMDB_API_BASE_URL = "https://www.omdbapi.com/"
DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_MAX_ATTEMPTS = 3


def load_env(*, override: bool = False) -> Path | None:
    """Load the first `.env` found in the repo root or the working directory."""

    repo_root = Path(__file__).resolve().parents[1]
    candidates = [
        repo_root / ".env",
        Path.cwd() / ".env",
    ]
    for path in candidates:
        if path.is_file():
            load_dotenv(dotenv_path=path, override=override)
            return path
    return None


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}.") from exc


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    if not raw.isdigit():
        raise ValueError(f"{name} must be a positive integer, got {raw!r}.")
    return int(raw)


@dataclass(frozen=True)
class OmdbConfig:
    # An empty key is accepted; OMDb rejects the request at call time.
    api_key: str = ""
    base_url: str = OMDB_API_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive.")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, *, api_key: str | None = None) -> "OmdbConfig":
        """
        Build a config from `OMDB_*` environment variables.

        An explicit `api_key` wins over `OMDB_API_KEY`.
        """

        env = os.environ if env is None else env
        resolved_key = api_key if api_key is not None else (env.get("OMDB_API_KEY") or "")
        return cls(
            api_key=resolved_key.strip(),
            base_url=(env.get("OMDB_BASE_URL") or "").strip() or OMDB_API_BASE_URL,
            timeout_seconds=_env_float(env, "OMDB_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
            max_attempts=_env_int(env, "OMDB_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
        )
