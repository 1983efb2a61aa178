"""Index data models shared by the scanner, the store, and the ranker."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

ROOT_PARENT_SENTINEL = "~"


class IndexEntry(BaseModel):
    """One filesystem node discovered by a scan.

    Attributes:
        name: Base name of the node, without path separators.
        path: Absolute path using platform-native separators.
        is_directory: Whether the node is a directory.
        parent_folder: Base name of the containing directory, or ``"~"`` when the
            containing directory has no name (the filesystem root).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    is_directory: bool
    parent_folder: str

    def key(self) -> tuple[str, str, bool, str]:
        """Return the entry as a hashable tuple of its fields."""
        return (self.name, self.path, self.is_directory, self.parent_folder)


class ScanProgress(BaseModel):
    """Advisory status of the scan in flight (or the last one to finish).

    Attributes:
        total_folders: Estimated number of folders to visit; grows as subfolders
            are queued.
        indexed_folders: Folders whose listing has been fully processed.
        total_files: Entries discovered so far, refreshed periodically and made
            exact when the scan completes.
        current_folder: Path of the folder most recently entered.
        is_complete: Whether the scan has finished.
    """

    total_folders: int = 0
    indexed_folders: int = 0
    total_files: int = 0
    current_folder: str = ""
    is_complete: bool = False


__all__ = ["IndexEntry", "ScanProgress", "ROOT_PARENT_SENTINEL"]
