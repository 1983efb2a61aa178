"""Depth-first filesystem traversal producing index entries."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from spyglass.state.models import ROOT_PARENT_SENTINEL, IndexEntry

from .progress import ProgressTracker

LOGGER = logging.getLogger(__name__)

# Directories that are catalogued themselves but never descended into.
DEFAULT_EXCLUDED_NAMES: tuple[str, ...] = (
    "node_modules",
    "target",
    ".git",
    "dist",
    "build",
    ".next",
    "vendor",
    "__pycache__",
    ".venv",
    "venv",
    ".cargo",
    "Library",
    ".Trash",
    "Applications",
)

DEFAULT_FILE_COUNT_INTERVAL = 100


class TreeScanner:
    """Walk a directory tree and catalogue every visible node by name and path."""

    def __init__(
        self,
        *,
        skip_hidden: bool = True,
        excluded_names: Iterable[str] | None = None,
        follow_symlinks: bool = False,
        file_count_interval: int = DEFAULT_FILE_COUNT_INTERVAL,
    ) -> None:
        self.skip_hidden = skip_hidden
        self.excluded_names = frozenset(
            DEFAULT_EXCLUDED_NAMES if excluded_names is None else excluded_names
        )
        self.follow_symlinks = follow_symlinks
        self.file_count_interval = max(1, file_count_interval)

    def scan(self, root: Path, progress: ProgressTracker | None = None) -> list[IndexEntry]:
        """Return entries for everything reachable under ``root``.

        Directories are listed depth-first: a directory's children are emitted
        together, then each child folder is descended into in listing order.
        A directory that cannot be listed is skipped along with its subtree.

        Args:
            root: Directory to start from.
            progress: Tracker updated as folders are processed. The file count is
                refreshed every ``file_count_interval`` entries and made exact
                before returning.

        Returns:
            list[IndexEntry]: Entries in discovery order.
        """
        root = Path(root).expanduser().absolute()
        tracker = progress if progress is not None else ProgressTracker()
        entries: list[IndexEntry] = []
        visited: set[tuple[int, int]] = set()
        self._mark_visited(root, visited)

        stack: list[Path] = [root]
        while stack:
            directory = stack.pop()
            subdirs = self._index_directory(directory, entries, tracker, visited)
            stack.extend(reversed(subdirs))

        tracker.update(total_files=len(entries))
        return entries

    def _index_directory(
        self,
        directory: Path,
        entries: list[IndexEntry],
        tracker: ProgressTracker,
        visited: set[tuple[int, int]],
    ) -> list[Path]:
        """List one directory, append its entries, and return folders to descend."""
        try:
            with os.scandir(directory) as iterator:
                children = list(iterator)
        except OSError as exc:
            LOGGER.debug("Skipping unreadable directory %s: %s", directory, exc)
            return []

        tracker.update(current_folder=str(directory))
        parent_folder = directory.name or ROOT_PARENT_SENTINEL
        subdirs: list[Path] = []

        for child in children:
            name = child.name
            if self.skip_hidden and name.startswith("."):
                continue

            is_directory = _is_directory(child)
            entries.append(
                IndexEntry(
                    name=name,
                    path=child.path,
                    is_directory=is_directory,
                    parent_folder=parent_folder,
                )
            )
            if len(entries) % self.file_count_interval == 0:
                tracker.update(total_files=len(entries))

            if not is_directory or name in self.excluded_names:
                continue
            if self._should_descend(child, visited):
                tracker.add(total_folders=1)
                subdirs.append(Path(child.path))

        tracker.add(indexed_folders=1)
        tracker.update(total_files=len(entries))
        return subdirs

    def _should_descend(self, child: os.DirEntry, visited: set[tuple[int, int]]) -> bool:
        try:
            if child.is_symlink() and not self.follow_symlinks:
                return False
            stat = child.stat()
        except OSError:
            return False
        key = (stat.st_dev, stat.st_ino)
        if key in visited:
            LOGGER.debug("Not revisiting %s", child.path)
            return False
        visited.add(key)
        return True

    @staticmethod
    def _mark_visited(root: Path, visited: set[tuple[int, int]]) -> None:
        try:
            stat = root.stat()
        except OSError:
            return
        visited.add((stat.st_dev, stat.st_ino))


def _is_directory(child: os.DirEntry) -> bool:
    try:
        return child.is_dir()
    except OSError:
        return False


__all__ = ["TreeScanner", "DEFAULT_EXCLUDED_NAMES", "DEFAULT_FILE_COUNT_INTERVAL"]
