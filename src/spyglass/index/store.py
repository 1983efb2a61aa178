"""In-memory snapshot holder with disk persistence."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from spyglass.state import IndexRepository, MissingStateError, StateError
from spyglass.state.models import IndexEntry

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IndexSnapshot:
    """One complete scan result with a lowercase name cache aligned to it.

    Attributes:
        entries: Entries in discovery order.
        lower_names: ``entry.name.lower()`` for each entry, in the same order.
    """

    entries: tuple[IndexEntry, ...] = ()
    lower_names: tuple[str, ...] = ()

    @classmethod
    def build(cls, entries: Iterable[IndexEntry]) -> "IndexSnapshot":
        """Freeze ``entries`` into a snapshot and precompute lowercase names."""
        frozen = tuple(entries)
        return cls(entries=frozen, lower_names=tuple(entry.name.lower() for entry in frozen))

    def __len__(self) -> int:
        return len(self.entries)


EMPTY_SNAPSHOT = IndexSnapshot()


class IndexStore:
    """Hold the committed snapshot and persist it through an ``IndexRepository``.

    The snapshot object is immutable; replacing it is a single reference swap
    under the lock, so readers always observe one whole scan.
    """

    def __init__(self, repository: IndexRepository | None = None) -> None:
        self._repository = repository or IndexRepository()
        self._lock = threading.Lock()
        self._snapshot = EMPTY_SNAPSHOT

    @property
    def repository(self) -> IndexRepository:
        """Return the repository used for persistence."""
        return self._repository

    @property
    def index_path(self) -> Path:
        """Return the on-disk snapshot location."""
        return self._repository.index_path

    def replace_snapshot(self, entries: Iterable[IndexEntry]) -> IndexSnapshot:
        """Commit ``entries`` as the visible snapshot and return it."""
        snapshot = IndexSnapshot.build(entries)
        with self._lock:
            self._snapshot = snapshot
        return snapshot

    def current_snapshot(self) -> IndexSnapshot:
        """Return the most recently committed snapshot (empty if none)."""
        with self._lock:
            return self._snapshot

    def count(self) -> int:
        """Return the number of entries in the committed snapshot."""
        return len(self.current_snapshot())

    def persist_to_disk(self) -> bool:
        """Write the committed snapshot to disk.

        Returns:
            bool: ``True`` when the snapshot was written. Failures are logged and
            reported as ``False``; the in-memory snapshot is unaffected.
        """
        snapshot = self.current_snapshot()
        try:
            path = self._repository.save(snapshot.entries)
        except StateError as exc:
            LOGGER.warning("Failed to persist index: %s", exc)
            return False
        LOGGER.info("Persisted %d entries to %s", len(snapshot), path)
        return True

    def load_from_disk(self) -> bool:
        """Replace the snapshot with the persisted one, if it can be read.

        Returns:
            bool: ``True`` when a snapshot was loaded; ``False`` when none exists or
            it is unreadable, in which case the current snapshot is left as is.
        """
        try:
            entries = self._repository.load()
        except MissingStateError as exc:
            LOGGER.info("%s", exc)
            return False
        except StateError as exc:
            LOGGER.warning("Ignoring unreadable index: %s", exc)
            return False
        self.replace_snapshot(entries)
        LOGGER.info("Loaded %d entries from %s", len(entries), self.index_path)
        return True


__all__ = ["IndexStore", "IndexSnapshot", "EMPTY_SNAPSHOT"]
