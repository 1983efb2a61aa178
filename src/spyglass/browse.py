"""Single-level directory browsing used for manual navigation."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel

from spyglass.config.models import SpyglassConfig


class BrowseError(Exception):
    """Raised when a folder cannot be listed."""


class DirectoryItem(BaseModel):
    """One visible child of a browsed folder.

    Attributes:
        name: Base name of the child.
        path: Absolute path of the child.
        is_directory: Whether the child is a directory.
    """

    name: str
    path: str
    is_directory: bool


def read_directory(path: str | Path) -> list[DirectoryItem]:
    """List the visible children of ``path``, folders first.

    Names starting with ``.`` are skipped. Each group is ordered
    case-insensitively by name.

    Raises:
        BrowseError: If the path is missing, is not a folder, or cannot be read.
    """
    folder = Path(path).expanduser()
    if not folder.exists():
        raise BrowseError(f"Path does not exist: {folder}")
    if not folder.is_dir():
        raise BrowseError(f"Path is not a directory: {folder}")

    items: list[DirectoryItem] = []
    try:
        with os.scandir(folder) as iterator:
            for entry in iterator:
                if entry.name.startswith("."):
                    continue
                try:
                    is_directory = entry.is_dir()
                except OSError:
                    is_directory = False
                items.append(
                    DirectoryItem(name=entry.name, path=entry.path, is_directory=is_directory)
                )
    except OSError as exc:
        raise BrowseError(f"Failed to read directory: {exc}") from exc

    items.sort(key=lambda item: (not item.is_directory, item.name.lower()))
    return items


def get_parent_path(path: str | Path) -> str | None:
    """Return the parent folder of ``path``, or ``None`` at the filesystem root."""
    current = Path(path)
    parent = current.parent
    if parent == current:
        return None
    return str(parent)


def get_relative_path(full_path: str | Path, base_path: str | Path) -> str:
    """Return ``full_path`` relative to ``base_path``, or unchanged when outside it."""
    try:
        return str(Path(full_path).relative_to(Path(base_path)))
    except ValueError:
        return str(full_path)


def path_exists(path: str | Path) -> bool:
    """Return whether ``path`` exists."""
    return Path(path).expanduser().exists()


def get_home_dir() -> str | None:
    """Return the user's home directory, or ``None`` if it cannot be determined."""
    try:
        return str(Path.home())
    except (RuntimeError, KeyError):
        return None


def initial_location(config: SpyglassConfig) -> str | None:
    """Return the folder browsing should open at.

    The remembered location wins when location memory is on and the folder still
    exists, then the active tab, then the configured root folder, then home.
    """
    if config.remember_location and config.last_location:
        remembered = Path(config.last_location).expanduser()
        if remembered.is_dir():
            return str(remembered)
    for tab in config.tabs or []:
        if tab.id == config.active_tab_id and Path(tab.path).expanduser().is_dir():
            return str(Path(tab.path).expanduser())
    if config.root_folder:
        return str(Path(config.root_folder).expanduser())
    return get_home_dir()


__all__ = [
    "BrowseError",
    "DirectoryItem",
    "read_directory",
    "get_parent_path",
    "get_relative_path",
    "path_exists",
    "get_home_dir",
    "initial_location",
]
