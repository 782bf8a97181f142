"""tools/core_cmd.py

Command-execution helpers shared by the git and build adapters and by the
benchmark runner.

This module deliberately avoids tool-specific knowledge. It provides:

* :func:`run_cmd` - run a subprocess (no ``shell=True``) and capture output.
* :func:`capture` - like :func:`run_cmd`, but return trimmed stdout and raise
  :class:`~benchdiff.errors.CommandError` on a non-zero exit.
* :func:`spawn` - run a subprocess with caller-chosen streams and return its
  exit code.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Dict, Optional, Sequence, Union

from benchdiff.errors import CommandError

logger = logging.getLogger(__name__)

Stream = Union[int, IO[Any], None]


@dataclass(frozen=True)
class CmdResult:
    exit_code: int
    elapsed_seconds: float
    command_str: str
    stdout: str
    stderr: str


def run_cmd(
    cmd: Sequence[str],
    *,
    cwd: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
) -> CmdResult:
    """Run a subprocess and capture stdout/stderr (no ``shell=True``).

    Never raises on non-zero exit codes; raises :class:`CommandError` only when
    the program cannot be started at all.
    """
    argv = [str(c) for c in cmd]
    logger.debug("run: %s", " ".join(argv))
    t0 = time.time()

    # If env is provided, merge it onto the current process environment.
    env2 = None
    if env is not None:
        env2 = os.environ.copy()
        env2.update(env)

    try:
        proc = subprocess.run(
            argv,
            cwd=str(cwd) if cwd else None,
            text=True,
            capture_output=True,
            env=env2,
        )
    except OSError as e:
        raise CommandError(argv, None, str(e)) from e
    elapsed = time.time() - t0

    return CmdResult(
        exit_code=proc.returncode,
        elapsed_seconds=elapsed,
        command_str=" ".join(argv),
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )


def capture(cmd: Sequence[str], *, cwd: Optional[Path] = None) -> str:
    """Run *cmd* and return its stripped stdout.

    A non-zero exit raises :class:`CommandError` carrying the process's stderr.
    """
    res = run_cmd(cmd, cwd=cwd)
    if res.exit_code != 0:
        raise CommandError(list(cmd), res.exit_code, res.stderr)
    return res.stdout.strip()


def spawn(
    cmd: Sequence[str],
    *,
    stdin: Stream = None,
    stdout: Stream = None,
    stderr: Stream = None,
    cwd: Optional[Path] = None,
) -> int:
    """Run *cmd* with the given streams and return its exit code.

    ``None`` streams are inherited from this process. Raises
    :class:`CommandError` only when the program cannot be started.
    """
    argv = [str(c) for c in cmd]
    logger.debug("spawn: %s", " ".join(argv))
    try:
        proc = subprocess.run(
            argv,
            stdin=stdin,
            stdout=stdout,
            stderr=stderr,
            cwd=str(cwd) if cwd else None,
        )
    except OSError as e:
        raise CommandError(argv, None, str(e)) from e
    return int(proc.returncode)
