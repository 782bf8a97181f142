#!/usr/bin/env python3
"""
benchdiff: run and compare Go microbenchmarks across a code change.

benchdiff builds the test binaries of the given packages at an old and a new
commit, runs every benchmark present in both, interleaving old and new for
``--count`` iterations, and compares the samples per metric.

Usage:
  benchdiff [--old <commit>] [--new <commit>] <pkgs>...

Examples:
  benchdiff ./pkg/...
  benchdiff --old=master~ --new=master --threshold=0.2 ./pkg/kv ./pkg/storage/...
  benchdiff --new=d1fbdb2 --run=Datum --count=2 ./pkg/sql/...
  benchdiff --new=6299bd4 --post-checkout='make generate' ./pkg/workload/...
  benchdiff --previous-run=2024-03-01T14_05_09Z ./pkg/kv
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from benchdiff.errors import BenchdiffError
from cli.args.base import add_base_args
from cli.args.processing import add_processing_args
from cli.dispatch import dispatch
from pipeline.wiring import BenchdiffConfig, build_pipeline, configure_logging, load_env

USAGE = "benchdiff [--old <commit>] [--new <commit>] <pkgs>..."


def build_parser(config: BenchdiffConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="benchdiff",
        usage=USAGE,
        description=(
            "Automates running and comparing Go microbenchmarks across code changes. "
            "All benchmarks in the given packages are run against the old and new "
            "commit and the results compared statistically."
        ),
        epilog=(
            "Cached test binaries and run logs live under --root "
            "(<root>/<ref>/bin and <root>/<ref>/artifacts)."
        ),
    )
    add_base_args(
        parser,
        default_root=str(config.root),
        default_post_checkout=config.post_checkout,
        default_backend=config.backend,
    )
    add_processing_args(parser, default_alpha=config.alpha)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    try:
        # Load .env before reading config so terminal and IDE runs behave alike.
        load_env()
        config = BenchdiffConfig.from_env()
    except (OSError, ValueError) as e:
        print(f"fatal: {e}", file=sys.stderr)
        return 1

    parser = build_parser(config)
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if not args.packages and not args.previous_run:
        parser.print_help(sys.stderr)
        return 0

    pipeline = build_pipeline(load_dotenv=False)
    try:
        return dispatch(args, pipeline)
    except (BenchdiffError, OSError, ValueError) as e:
        print(f"fatal: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
