#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from org_movies.integrations.imdb.urls import MalformedImdbUrlError  # noqa: E402
from org_movies.integrations.omdb.client import OmdbClientError  # noqa: E402
from org_movies.outline.document import (  # noqa: E402
    OutlineFileError,
    insert_node_at_cursor,
    insert_node_at_line,
)
from org_movies.outline.node import format_movie_node  # noqa: E402
from scripts._cli_common import add_omdb_args, build_client, configure_logging  # noqa: E402


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="add_movie",
        description="Fetch one movie from OMDb by IMDb URL and render it as an Org heading.",
    )
    parser.add_argument("url", nargs="?", default=None, help="IMDb title URL (prompted when omitted).")
    parser.add_argument(
        "--file",
        type=str,
        default=None,
        help="Org file to insert the node into (default: print to stdout).",
    )
    position = parser.add_mutually_exclusive_group()
    position.add_argument(
        "--line",
        type=int,
        default=None,
        help="Insert before this 1-based line of --file (default: append).",
    )
    position.add_argument(
        "--offset",
        type=int,
        default=None,
        help="Insert at this character offset of --file; mid-line offsets move to the next line.",
    )
    add_omdb_args(parser)
    return parser.parse_args(argv)


def run_from_cli(args: argparse.Namespace) -> None:
    configure_logging(bool(args.verbose))

    url = (args.url or "").strip()
    if not url:
        url = input("IMDb URL: ").strip()

    with build_client(args) as client:
        try:
            record = client.fetch_movie_by_url(url)
            node = format_movie_node(record, args.level)
        except (MalformedImdbUrlError, OmdbClientError, ValueError) as exc:
            raise SystemExit(f"Error: {exc}") from exc

    if not args.file:
        sys.stdout.write(node)
        return

    try:
        if args.offset is not None:
            insert_node_at_cursor(args.file, node, args.offset)
        else:
            insert_node_at_line(args.file, node, args.line)
    except (OutlineFileError, ValueError) as exc:
        raise SystemExit(f"Error: {exc}") from exc
    print(f"Added {record.title_or_empty or url} to {args.file}")


def main(argv: list[str]) -> int:
    args = _parse_args(argv)
    run_from_cli(args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(list(sys.argv[1:])))
