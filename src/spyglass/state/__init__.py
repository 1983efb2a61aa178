"""Persistence of index snapshots for Spyglass."""

from __future__ import annotations

import contextlib
import json
import os
from pathlib import Path
from typing import Sequence

from pydantic import TypeAdapter, ValidationError

from .errors import MissingStateError, StateError
from .models import IndexEntry, ScanProgress

DEFAULT_STATE_DIR = Path("~/.spyglass")
INDEX_FILENAME = "index.json"

_ENTRIES_ADAPTER = TypeAdapter(list[IndexEntry])


class IndexRepository:
    """Read and write the flat ``index.json`` snapshot."""

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize the repository.

        Args:
            state_dir: Directory holding the snapshot; defaults to ``~/.spyglass``.
        """
        self._state_dir = (state_dir or DEFAULT_STATE_DIR).expanduser()

    @property
    def state_dir(self) -> Path:
        """Return the directory that holds the snapshot."""
        return self._state_dir

    @property
    def index_path(self) -> Path:
        """Return the fixed snapshot location."""
        return self._state_dir / INDEX_FILENAME

    def load(self) -> list[IndexEntry]:
        """Load the persisted snapshot.

        Returns:
            list[IndexEntry]: Entries in the order they were saved.

        Raises:
            MissingStateError: If no snapshot file is present.
            StateError: If the file cannot be read or does not hold a list of entries.
        """
        path = self.index_path
        if not path.exists():
            raise MissingStateError(f"No index found at {path}")

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            raise StateError(f"Unable to read index file: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise StateError(f"Invalid index data: {exc}") from exc

        try:
            return _ENTRIES_ADAPTER.validate_python(data)
        except ValidationError as exc:
            raise StateError(f"Index file does not contain valid entries: {exc}") from exc

    def save(self, entries: Sequence[IndexEntry]) -> Path:
        """Persist ``entries``, replacing any previous snapshot.

        The payload is written to a sibling temporary file first and then moved
        into place so an interrupted write never leaves a truncated index.

        Args:
            entries: Snapshot to serialize.

        Returns:
            Path: Location of the written snapshot.

        Raises:
            StateError: If the directory or file cannot be written.
        """
        path = self.index_path
        payload = [entry.model_dump(mode="json") for entry in entries]
        temp_path = path.with_name(path.name + ".tmp")
        try:
            self._state_dir.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(json.dumps(payload), encoding="utf-8")
            os.replace(temp_path, path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                temp_path.unlink(missing_ok=True)
            raise StateError(f"Unable to write index file {path}: {exc}") from exc
        return path

    def clear(self) -> None:
        """Delete the persisted snapshot if one exists."""
        try:
            self.index_path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StateError(f"Unable to remove index file: {exc}") from exc


__all__ = [
    "IndexRepository",
    "DEFAULT_STATE_DIR",
    "INDEX_FILENAME",
    "StateError",
    "MissingStateError",
    "IndexEntry",
    "ScanProgress",
]
