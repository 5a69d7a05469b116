"""
Progress reporting for scans.

Workers report each finished file through notify(), which only enqueues and
never blocks. A background thread drains the queue, counts completions and
prints a status line to the console every `interval` files, each one
overwriting the last with a carriage return, plus a final newline-terminated
summary when the reporter is closed.
"""

import logging
import queue
import threading
import time
from collections.abc import Callable

from rich.console import Console

logger = logging.getLogger(__name__)

_SENTINEL = object()


class ProgressReporter:
    """Background consumer of per-file completion notifications."""

    def __init__(
        self,
        console: Console | None = None,
        interval: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the reporter.

        Args:
            console: Status console; defaults to a console on stderr
            interval: Print a status line every this many completions
            clock: Monotonic time source, injectable for tests
        """
        if interval < 1:
            raise ValueError(f"interval must be at least 1, got {interval}")
        self._console = console or Console(stderr=True, highlight=False)
        self._interval = interval
        self._clock = clock
        self._queue: queue.SimpleQueue[object] = queue.SimpleQueue()
        self._thread: threading.Thread | None = None
        self._count = 0
        self._started_at = 0.0
        self._closed = False

    @property
    def count(self) -> int:
        """Number of completions consumed so far."""
        return self._count

    def start(self) -> "ProgressReporter":
        """Start the background thread. Calling start twice is an error."""
        if self._thread is not None:
            raise RuntimeError("Progress reporter is already running")
        self._started_at = self._clock()
        self._thread = threading.Thread(
            target=self._run, name="srccat-progress", daemon=True
        )
        self._thread.start()
        return self

    def notify(self, relative_path: str) -> None:
        """Record that a file has been handled."""
        self._queue.put(relative_path)

    def close(self) -> None:
        """Drain outstanding notifications, print the summary and stop."""
        if self._closed:
            return
        self._closed = True
        self._queue.put(_SENTINEL)
        if self._thread is not None:
            self._thread.join()
        else:
            # Never started: drain inline so the summary is still printed
            self._started_at = self._started_at or self._clock()
            self._run()

    def __enter__(self) -> "ProgressReporter":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _SENTINEL:
                break
            self._count += 1
            if self._count % self._interval == 0:
                self._emit(end="\r")
        self._emit(end="\n")
        logger.debug(f"Progress reporter finished after {self._count} files")

    def _emit(self, end: str) -> None:
        # Periodic lines overwrite each other; only the summary ends the line
        elapsed = round(self._clock() - self._started_at)
        self._console.print(
            f"Processed {self._count} files in {elapsed}s",
            end=end,
            markup=False,
            highlight=False,
        )
