"""pipeline.wiring

This module is the **composition root** for the Python runtime.

"Composition root" means: the single place where we *assemble* the running
application from its building blocks:

- load configuration / environment variables (``.env`` via python-dotenv)
- configure logging
- build the high-level pipeline facade object

Keeping this wiring in one place prevents configuration and dependency setup
from being duplicated across entrypoints (CLI, scripts, CI).

Environment
-----------
``BENCHDIFF_ROOT``           invocation root for caches and logs (default ``benchdiff``)
``BENCHDIFF_POST_CHECKOUT``  default post-checkout hook command
``BENCHDIFF_BACKEND``        ``go`` (default) or ``bazel``
``BENCHDIFF_ALPHA``          significance level (default 0.05)

Real environment variables always win over ``.env`` values.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import dotenv

from benchdiff.io.layout import DEFAULT_ROOT
from tools.go_build import BACKENDS

from pipeline.pipeline import BenchdiffPipeline
from pipeline.stats import DEFAULT_ALPHA, check_alpha

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class BenchdiffConfig:
    root: Path = Path(DEFAULT_ROOT)
    post_checkout: Optional[str] = None
    backend: str = "go"
    alpha: float = DEFAULT_ALPHA

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BenchdiffConfig":
        env = os.environ if environ is None else environ

        raw_alpha = (env.get("BENCHDIFF_ALPHA") or "").strip()
        try:
            alpha = float(raw_alpha) if raw_alpha else DEFAULT_ALPHA
        except ValueError:
            raise ValueError(f"BENCHDIFF_ALPHA must be a number, got {raw_alpha!r}") from None
        try:
            check_alpha(alpha)
        except ValueError as e:
            raise ValueError(f"BENCHDIFF_ALPHA: {e}") from None

        backend = (env.get("BENCHDIFF_BACKEND") or "go").strip()
        if backend not in BACKENDS:
            raise ValueError(f"BENCHDIFF_BACKEND must be one of {sorted(BACKENDS)}, got {backend!r}")

        return cls(
            root=Path(env.get("BENCHDIFF_ROOT") or DEFAULT_ROOT),
            post_checkout=env.get("BENCHDIFF_POST_CHECKOUT") or None,
            backend=backend,
            alpha=alpha,
        )


def load_env(dotenv_path: Optional[Path] = None) -> None:
    """Load ``.env`` (searched upward from the cwd) without overriding real env vars."""
    path = str(dotenv_path) if dotenv_path else dotenv.find_dotenv(usecwd=True)
    if path:
        dotenv.load_dotenv(path, override=False)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def build_pipeline(*, load_dotenv: bool = True) -> BenchdiffPipeline:
    """Build the high-level pipeline facade.

    This is the place to swap implementations for tests.
    """
    if load_dotenv:
        load_env()
    return BenchdiffPipeline()
