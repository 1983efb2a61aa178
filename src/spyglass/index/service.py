"""Process-wide index state and the command surface used by front ends."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable

from spyglass.config.models import IndexingOptions
from spyglass.state import IndexRepository
from spyglass.state.models import IndexEntry, ScanProgress

from .progress import ProgressPublisher, ProgressTracker
from .ranker import MAX_RESULTS, rank_entries
from .store import IndexStore
from .traversal import TreeScanner

LOGGER = logging.getLogger(__name__)


class ScanError(Exception):
    """Raised when a scan cannot be started."""


def _default_root() -> Path:
    try:
        return Path.home()
    except (RuntimeError, KeyError) as exc:
        raise ScanError(f"Could not find home directory: {exc}") from exc


class IndexService:
    """Own the snapshot, the visible progress record, and the scan flag.

    The three are locked independently. Queries read only the committed
    snapshot and the published progress, so they never wait on a running scan.
    """

    def __init__(
        self,
        *,
        root: Path | None = None,
        repository: IndexRepository | None = None,
        options: IndexingOptions | None = None,
        root_resolver: Callable[[], Path] = _default_root,
    ) -> None:
        """Initialize the service.

        Args:
            root: Directory to scan; the user's home directory when omitted.
            repository: Snapshot persistence; defaults to ``~/.spyglass/index.json``.
            options: Traversal settings; defaults mirror ``IndexingOptions()``.
            root_resolver: Callable returning the default root when ``root`` is
                not given.
        """
        self._root = root
        self._root_resolver = root_resolver
        self._options = options or IndexingOptions()
        self._store = IndexStore(repository)
        self._progress = ProgressTracker()
        self._flag_lock = threading.Lock()
        self._is_indexing = False
        self._idle = threading.Event()
        self._idle.set()

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    @property
    def store(self) -> IndexStore:
        """Return the underlying snapshot store."""
        return self._store

    @property
    def index_path(self) -> Path:
        """Return the fixed on-disk snapshot location."""
        return self._store.index_path

    def start_scan(self) -> bool:
        """Begin a background scan of the root directory.

        Returns:
            bool: ``True`` if a scan was started, ``False`` if one was already
            running and the call was ignored.

        Raises:
            ScanError: If the root directory is missing; nothing is started.
        """
        root = self._resolve_root()

        with self._flag_lock:
            if self._is_indexing:
                LOGGER.debug("Scan already running; ignoring start request.")
                return False
            self._is_indexing = True
            self._idle.clear()

        working = ProgressTracker(ScanProgress(total_folders=1))
        self._progress.publish(working.snapshot())
        worker = threading.Thread(
            target=self._run_scan,
            args=(root, working),
            name="spyglass-scan",
            daemon=True,
        )
        worker.start()
        return True

    def is_indexing(self) -> bool:
        """Return whether a scan is currently running."""
        with self._flag_lock:
            return self._is_indexing

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the running scan (if any) has committed and persisted.

        Args:
            timeout: Maximum number of seconds to wait; ``None`` waits forever.

        Returns:
            bool: ``True`` if no scan is running when the call returns.
        """
        return self._idle.wait(timeout)

    def get_progress(self) -> ScanProgress:
        """Return the latest published progress record."""
        return self._progress.snapshot()

    def search(self, query: str, *, limit: int = MAX_RESULTS) -> list[IndexEntry]:
        """Return up to ``limit`` committed entries ranked against ``query``."""
        return rank_entries(self._store.current_snapshot(), query, limit=limit)

    def load_persisted_index(self) -> bool:
        """Hydrate the snapshot from disk.

        The progress record is only refreshed when no scan is running; during a
        scan it keeps describing that scan.

        Returns:
            bool: ``True`` if a persisted snapshot was loaded.
        """
        if not self._store.load_from_disk():
            return False
        if self.is_indexing():
            return True
        count = self._store.count()
        current = self._progress.snapshot()
        loaded = current.model_copy(update={"total_files": count, "is_complete": True})
        self._progress.publish(loaded)
        return True

    def index_count(self) -> int:
        """Return the number of committed entries."""
        return self._store.count()

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _resolve_root(self) -> Path:
        root = self._root if self._root is not None else self._root_resolver()
        root = Path(root).expanduser()
        if not root.is_dir():
            raise ScanError(f"Scan root does not exist or is not a directory: {root}")
        return root

    def _run_scan(self, root: Path, working: ProgressTracker) -> None:
        """Scan ``root`` on the worker thread, then commit and persist the result."""
        options = self._options
        scanner = TreeScanner(
            skip_hidden=options.skip_hidden,
            excluded_names=options.excluded_names,
            follow_symlinks=options.follow_symlinks,
            file_count_interval=options.file_count_interval,
        )
        publisher = ProgressPublisher(
            working,
            self._progress,
            interval=options.progress_interval_ms / 1000,
        )
        started = time.monotonic()
        LOGGER.info("Indexing %s", root)
        try:
            publisher.start()
            entries: list[IndexEntry] | None = None
            try:
                entries = scanner.scan(root, working)
            except Exception:
                LOGGER.exception("Scan of %s failed; keeping the previous index.", root)

            # Commit before completion becomes visible.
            if entries is not None:
                self._store.replace_snapshot(entries)
                LOGGER.info(
                    "Indexed %d entries under %s in %.2fs",
                    len(entries),
                    root,
                    time.monotonic() - started,
                )

            working.update(is_complete=True, total_files=self._store.count())
            publisher.flush()
            publisher.join()
            self._progress.publish(working.snapshot())
            if entries is not None:
                self._store.persist_to_disk()
        finally:
            with self._flag_lock:
                self._is_indexing = False
                self._idle.set()


__all__ = ["IndexService", "ScanError"]
