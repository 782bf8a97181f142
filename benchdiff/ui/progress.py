"""benchdiff.ui.progress

A single overwriting status line with a spinner at the end.

Builds and benchmark runs can stay silent for minutes; the reporter keeps the
line visibly alive by redrawing it on a fixed interval, even when no new
progress has been pushed.

Threading model
---------------
Each reporter owns one background thread and one handoff queue. Nothing is
process-global, so two reporters could coexist (the pipeline never nests
them).

* ``update()`` blocks until the renderer thread has taken the new progress
  string off the queue. That throttles tight loops to the renderer's pace.
* ``stop()`` posts a sentinel, waits for the thread to draw its final line and
  exit, and only then returns, so nothing redraws over the caller's next
  output.

States: idle -> running -> stopped. A reporter cannot be restarted.
"""

from __future__ import annotations

import queue
import threading
from typing import Optional, TextIO, Tuple

SPINNER_CHARS = ("|", "/", "-", "\\")

DEFAULT_INTERVAL = 0.1

_STOP = object()

_CLEAR_EOL = "\x1b[K"


def fraction(n: int, d: int) -> str:
    """Format ``n/d`` with *n* right-aligned to the width of *d*."""
    width = len(str(d))
    return f"{n:>{width}}/{d}"


class ProgressReporter:
    def __init__(
        self,
        out: TextIO,
        prefix: str = "",
        *,
        interval: float = DEFAULT_INTERVAL,
    ) -> None:
        self._out = out
        self._prefix = prefix
        self._interval = interval
        self._queue: "queue.Queue[Tuple[object, threading.Event]]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._state = "idle"
        self._error: Optional[BaseException] = None

    @property
    def state(self) -> str:
        return self._state

    def __enter__(self) -> "ProgressReporter":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._shutdown()
        # An exception leaving the block wins over a render failure.
        if exc_type is None:
            self._raise_if_failed()

    def start(self) -> None:
        if self._state != "idle":
            raise RuntimeError("progress reporter started twice")
        self._state = "running"
        self._thread = threading.Thread(
            target=self._loop, name="benchdiff-progress", daemon=True
        )
        self._thread.start()

    def update(self, progress: str) -> None:
        """Hand *progress* to the renderer; returns once it has been taken."""
        if self._state != "running":
            raise RuntimeError(f"progress reporter is {self._state}, not running")
        ack = threading.Event()
        self._queue.put((progress, ack))
        while not ack.wait(self._interval):
            if self._thread is None or not self._thread.is_alive():
                break
        self._raise_if_failed()

    def stop(self) -> None:
        self._shutdown()
        self._raise_if_failed()

    def _shutdown(self) -> None:
        if self._state == "idle":
            self._state = "stopped"
            return
        if self._state == "stopped":
            return
        self._state = "stopped"
        self._queue.put((_STOP, threading.Event()))
        if self._thread is not None:
            self._thread.join()

    # ------------------------------------------------------------------
    # Renderer thread
    # ------------------------------------------------------------------

    def _loop(self) -> None:
        progress = ""
        spins = 0
        try:
            while True:
                try:
                    item, ack = self._queue.get(timeout=self._interval)
                except queue.Empty:
                    pass  # tick
                else:
                    ack.set()
                    if item is _STOP:
                        break
                    progress = str(item)
                self._render(progress, spins)
                spins += 1
            self._render(progress, spins)
            self._out.write("\n")
            self._out.flush()
        except Exception as e:  # re-raised on the caller's thread
            self._error = e

    def _render(self, progress: str, spins: int) -> None:
        line = self._prefix
        if progress:
            line += f" {progress}"
        line += f" {SPINNER_CHARS[spins % len(SPINNER_CHARS)]}"
        clear = _CLEAR_EOL if _isatty(self._out) else ""
        self._out.write(f"\r{line}{clear}")
        self._out.flush()

    def _raise_if_failed(self) -> None:
        if self._error is not None:
            raise self._error


def _isatty(out: TextIO) -> bool:
    isatty = getattr(out, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        return False
