from __future__ import annotations

import argparse

from pipeline.stats import ORDERS, check_alpha


def significance_level(raw: str) -> float:
    try:
        return check_alpha(float(raw))
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def add_processing_args(parser: argparse.ArgumentParser, *, default_alpha: float) -> None:
    """Register the flags that control how samples are compared and reported."""

    parser.add_argument(
        "-s",
        "--sort",
        dest="order",
        choices=list(ORDERS),
        default="delta",
        help="sort output by 'delta' (best first) or 'name'",
    )
    parser.add_argument(
        "--alpha",
        type=significance_level,
        default=default_alpha,
        metavar="<a>",
        help=f"significance level for reporting a change (default {default_alpha})",
    )
    parser.add_argument(
        "-t",
        "--threshold",
        type=float,
        default=None,
        metavar="<n>",
        help=(
            "exit with code 0 if all regressions are below threshold, else 1 "
            "(fraction, e.g. 0.2 = 20%%)"
        ),
    )
    parser.add_argument(
        "-p",
        "--previous-run",
        dest="previous_run",
        metavar="<time>",
        help="time of previous run; skip running benches and just (re)process previous run",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
