from __future__ import annotations

import argparse
from pathlib import Path
from typing import Tuple

from benchdiff.io.layout import PROFILE_KINDS
from pipeline.models import CompareRequest
from pipeline.pipeline import BenchdiffPipeline


def selected_profiles(args: argparse.Namespace) -> Tuple[str, ...]:
    return tuple(kind for kind in PROFILE_KINDS if getattr(args, f"{kind}profile", False))


def request_from_args(args: argparse.Namespace) -> CompareRequest:
    """Translate parsed CLI flags into a :class:`CompareRequest`."""
    return CompareRequest(
        packages=tuple(args.packages),
        old_ref=args.old_ref or None,
        new_ref=args.new_ref or None,
        iterations=int(args.iterations),
        run_pattern=str(args.run_pattern),
        bench_time=args.bench_time or None,
        profiles=selected_profiles(args),
        post_checkout=args.post_checkout or None,
        backend=str(args.backend),
        order=str(args.order),
        alpha=float(args.alpha),
        threshold=args.threshold,
        previous_run=args.previous_run or None,
        root=Path(args.root).expanduser(),
    )


def dispatch(args: argparse.Namespace, pipeline: BenchdiffPipeline) -> int:
    return int(pipeline.run(request_from_args(args)))
