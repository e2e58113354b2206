from __future__ import annotations

import argparse
import logging
import sys

from org_movies.config import OmdbConfig, load_env
from org_movies.integrations.omdb.client import DEFAULT_ASYNC_WORKERS, OmdbClient


def add_omdb_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--api-key",
        type=str,
        default=None,
        help="OMDb API key (default: OMDB_API_KEY from the environment or .env).",
    )
    parser.add_argument(
        "--level",
        type=int,
        default=2,
        help="Org heading level for inserted nodes (default: 2).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_client(args: argparse.Namespace, *, max_workers: int = DEFAULT_ASYNC_WORKERS) -> OmdbClient:
    load_env()
    config = OmdbConfig.from_env(api_key=args.api_key)
    if not config.api_key:
        print("Warning: OMDB_API_KEY is not set; OMDb will reject requests.", file=sys.stderr)
    return OmdbClient(config, max_workers=max_workers)
