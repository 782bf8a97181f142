from __future__ import annotations

import argparse

from tools.go_build import BACKENDS


def positive_int(raw: str) -> int:
    try:
        n = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {raw!r}") from None
    if n < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {n}")
    return n


def add_base_args(
    parser: argparse.ArgumentParser,
    *,
    default_root: str,
    default_post_checkout: str | None,
    default_backend: str,
) -> None:
    """Register the flags that select *what* is built and run.

    This includes:
    - package patterns and the old/new refs
    - build backend and post-checkout hook
    - iteration count, benchmark filter and bench time
    - profiling toggles
    """

    parser.add_argument(
        "packages",
        nargs="*",
        metavar="pkgs",
        help="Go package patterns to benchmark (e.g. ./pkg/kv ./pkg/storage/...)",
    )
    parser.add_argument(
        "-n",
        "--new",
        dest="new_ref",
        metavar="<commit>",
        help="measure the difference between this commit and old (default HEAD)",
    )
    parser.add_argument(
        "-o",
        "--old",
        dest="old_ref",
        metavar="<commit>",
        help=(
            "measure the difference between this commit and new (default new~). "
            "'lastmerge' selects the most recent merge commit."
        ),
    )

    # Execution
    parser.add_argument(
        "-r",
        "--run",
        dest="run_pattern",
        default=".",
        metavar="<regexp>",
        help="run only benchmarks matching regexp",
    )
    parser.add_argument(
        "-c",
        "--count",
        dest="iterations",
        type=positive_int,
        default=10,
        metavar="<n>",
        help="run tests and benchmarks n times, interleaving old and new (default 10)",
    )
    parser.add_argument(
        "-d",
        "--benchtime",
        dest="bench_time",
        metavar="<d>",
        help="run each benchmark for duration d (default 1s)",
    )
    parser.add_argument("--cpuprofile", action="store_true", help="record and write cpu profiles")
    parser.add_argument("--memprofile", action="store_true", help="record and write allocation profiles")
    parser.add_argument(
        "--mutexprofile", action="store_true", help="record and write mutex contention profiles"
    )

    # Build
    parser.add_argument(
        "--post-checkout",
        dest="post_checkout",
        default=default_post_checkout,
        metavar="<cmd>",
        help=(
            "an optional command to run after checking out each ref to configure the "
            "repo so that the build succeeds"
        ),
    )
    parser.add_argument(
        "-b",
        "--bazel",
        dest="backend",
        action="store_const",
        const="bazel",
        default=default_backend,
        help="build the test binaries with bazel",
    )
    parser.add_argument(
        "--backend",
        dest="backend",
        choices=sorted(BACKENDS),
        help=f"build backend (default: {default_backend})",
    )
    parser.add_argument(
        "--root",
        default=default_root,
        metavar="<dir>",
        help=f"directory holding cached binaries and run artifacts (default: {default_root})",
    )
