#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from org_movies.ingestion.watchlist_import import FailurePolicy, WatchlistImportAborted, import_watchlist  # noqa: E402
from org_movies.outline.document import OutlineFileError  # noqa: E402
from scripts._cli_common import add_omdb_args, build_client, configure_logging  # noqa: E402


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="import_watchlist",
        description="Append every IMDb title in a CSV watchlist export to an Org file.",
    )
    parser.add_argument("csv", help="Watchlist CSV export (any row with an IMDb URL after a comma).")
    parser.add_argument("target", help="Org file to append nodes to (created when missing).")
    parser.add_argument(
        "--concurrency",
        type=int,
        default=5,
        help="Parallelism for OMDb lookups (default: 5).",
    )
    parser.add_argument(
        "--on-error",
        choices=[p.value for p in FailurePolicy],
        default=FailurePolicy.COLLECT.value,
        help="collect: report failed rows at the end (default); ignore: stay silent; abort: stop at the first failure.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Optional overall timeout in seconds for the whole import.",
    )
    add_omdb_args(parser)
    return parser.parse_args(argv)


def run_from_cli(args: argparse.Namespace) -> int:
    configure_logging(bool(args.verbose))
    policy = FailurePolicy(args.on_error)

    if args.concurrency < 1:
        raise SystemExit("Error: --concurrency must be at least 1.")

    with build_client(args, max_workers=args.concurrency) as client:
        try:
            summary = import_watchlist(
                args.csv,
                args.target,
                client,
                level=args.level,
                concurrency=args.concurrency,
                failure_policy=policy,
                timeout_seconds=args.timeout,
            )
        except WatchlistImportAborted as exc:
            print(f"Imported {exc.summary.imported} movie(s) before aborting.")
            raise SystemExit(f"Error: {exc}") from exc
        except (OutlineFileError, ValueError) as exc:
            raise SystemExit(f"Error: {exc}") from exc

    print(f"Imported {summary.imported} movie(s) into {args.target}.")
    if summary.failures and policy is FailurePolicy.COLLECT:
        print(f"{len(summary.failures)} row(s) failed:")
        for failure in summary.failures:
            print(f"  - {failure.message}")
        return 1
    return 0


def main(argv: list[str]) -> int:
    args = _parse_args(argv)
    return run_from_cli(args)


if __name__ == "__main__":
    raise SystemExit(main(list(sys.argv[1:])))
