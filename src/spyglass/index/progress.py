"""Concurrently observable scan progress and the publisher that syncs it."""

from __future__ import annotations

import logging
import threading
from typing import Any

from spyglass.state.models import ScanProgress

LOGGER = logging.getLogger(__name__)

DEFAULT_PUBLISH_INTERVAL_SECONDS = 0.2
MIN_PUBLISH_INTERVAL_SECONDS = 0.01


class ProgressTracker:
    """Lock-guarded ``ScanProgress`` record.

    Every method holds the lock only long enough to copy or update the record,
    so a reader never waits on filesystem work performed by the writer.
    """

    def __init__(self, initial: ScanProgress | None = None) -> None:
        self._lock = threading.Lock()
        self._progress = initial.model_copy() if initial is not None else ScanProgress()

    def snapshot(self) -> ScanProgress:
        """Return a copy of the current record."""
        with self._lock:
            return self._progress.model_copy()

    def publish(self, progress: ScanProgress) -> None:
        """Replace the record with a copy of ``progress``."""
        copied = progress.model_copy()
        with self._lock:
            self._progress = copied

    def update(self, **changes: Any) -> None:
        """Assign the given fields on the record."""
        with self._lock:
            for field, value in changes.items():
                setattr(self._progress, field, value)

    def add(self, **increments: int) -> None:
        """Increment the given integer fields on the record."""
        with self._lock:
            for field, amount in increments.items():
                setattr(self._progress, field, getattr(self._progress, field) + amount)


class ProgressPublisher(threading.Thread):
    """Copy a scan's private progress into the visible tracker on a fixed cadence.

    The thread terminates after pushing a record whose ``is_complete`` flag is
    set, so the last copy it publishes is always the exact final one.
    """

    def __init__(
        self,
        source: ProgressTracker,
        target: ProgressTracker,
        *,
        interval: float = DEFAULT_PUBLISH_INTERVAL_SECONDS,
    ) -> None:
        super().__init__(name="spyglass-progress", daemon=True)
        self._source = source
        self._target = target
        self._interval = max(MIN_PUBLISH_INTERVAL_SECONDS, interval)
        self._wake = threading.Event()

    @property
    def interval(self) -> float:
        """Return the seconds between copies."""
        return self._interval

    def run(self) -> None:
        while True:
            self._wake.wait(self._interval)
            self._wake.clear()
            # Copy out of one lock before taking the other; never nest them.
            current = self._source.snapshot()
            self._target.publish(current)
            if current.is_complete:
                LOGGER.debug("Published final progress: %s files.", current.total_files)
                return

    def flush(self) -> None:
        """Wake the publisher so the next copy happens immediately."""
        self._wake.set()


__all__ = [
    "ProgressTracker",
    "ProgressPublisher",
    "DEFAULT_PUBLISH_INTERVAL_SECONDS",
    "MIN_PUBLISH_INTERVAL_SECONDS",
]
