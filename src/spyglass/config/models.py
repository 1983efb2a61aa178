"""Configuration models describing Spyglass settings."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from spyglass.index.traversal import DEFAULT_EXCLUDED_NAMES, DEFAULT_FILE_COUNT_INTERVAL


class SpyglassBaseModel(BaseModel):
    """Shared configuration for Spyglass Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class Tab(SpyglassBaseModel):
    """A pinned folder shown as a tab in the launcher.

    Attributes:
        id: Stable identifier of the tab.
        path: Folder the tab opens.
        name: Display label.
        color: Display color, as a CSS color string.
    """

    id: str
    path: str
    name: str
    color: str


class IndexingOptions(SpyglassBaseModel):
    """Options governing how the filesystem is catalogued.

    Attributes:
        skip_hidden: Whether names starting with ``.`` are left out entirely.
        excluded_names: Directory names that are catalogued but never descended into.
        follow_symlinks: Whether symlinked directories are descended into.
        progress_interval_ms: Cadence at which scan progress becomes visible.
        file_count_interval: Number of discovered entries between file-count updates.
    """

    skip_hidden: bool = True
    excluded_names: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDED_NAMES))
    follow_symlinks: bool = False
    progress_interval_ms: int = Field(default=200, gt=0)
    file_count_interval: int = Field(default=DEFAULT_FILE_COUNT_INTERVAL, ge=1)


class SearchOptions(SpyglassBaseModel):
    """Search presentation defaults.

    Attributes:
        max_results: Number of ranked results returned per query (at most 100).
    """

    max_results: int = Field(default=100, ge=1, le=100)


class LoggingSettings(SpyglassBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    max_size_mb: int = 10
    backup_count: int = 3


class CLIOptions(SpyglassBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class SpyglassConfig(SpyglassBaseModel):
    """Top-level configuration struct for Spyglass.

    Attributes:
        root_folder: Folder the browser opens at; the home directory when unset.
        global_hotkey: Shortcut that toggles the launcher window.
        remember_location: Whether the last browsed folder is restored on start.
        last_location: Last browsed folder.
        tabs: Pinned folders.
        active_tab_id: Identifier of the selected tab.
        indexing: Traversal settings.
        search: Search settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    root_folder: Optional[str] = None
    global_hotkey: Optional[str] = None
    remember_location: bool = True
    last_location: Optional[str] = None
    tabs: Optional[List[Tab]] = None
    active_tab_id: Optional[str] = None
    indexing: IndexingOptions = Field(default_factory=IndexingOptions)
    search: SearchOptions = Field(default_factory=SearchOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "SpyglassBaseModel",
    "Tab",
    "IndexingOptions",
    "SearchOptions",
    "LoggingSettings",
    "CLIOptions",
    "SpyglassConfig",
]
