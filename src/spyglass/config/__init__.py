"""Configuration management for Spyglass.

Settings live in ``~/.spyglass/config.yaml`` next to the index. Values are
resolved as defaults, then the file, then ``SPYGLASS__*`` environment
variables, then CLI overrides.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import IndexingOptions, LoggingSettings, SearchOptions, SpyglassConfig, Tab
from .resolver import (
    ENV_PREFIX,
    assign_nested,
    flatten_for_env,
    parse_env_overrides,
    resolve_with_precedence,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.spyglass/config.yaml")
_HEADER_LINES = (
    "# Spyglass configuration file",
    "# Edit with `spyglass config edit` or `spyglass config set KEY --value VALUE`.",
)


class ConfigManager:
    """Read, resolve, and write the Spyglass configuration file."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = os.environ if env is None else env

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> SpyglassConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides with the highest precedence.
            include_env: Whether ``SPYGLASS__*`` variables are applied.
            ensure_file: Whether a default file is written when none exists.
            env_overrides: Environment to read instead of the process environment.

        Raises:
            ConfigError: If the file cannot be parsed or a value is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_layer = None
        if include_env:
            env_layer = parse_env_overrides(
                self._env if env_overrides is None else env_overrides
            )

        return resolve_with_precedence(
            defaults=SpyglassConfig(),
            file_overrides=self._read_file(),
            env_overrides=env_layer or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the mapping stored on disk, without defaults or overrides."""
        return self._read_file()

    def save(self, config: SpyglassConfig | Mapping[str, Any]) -> None:
        """Replace the file contents with ``config``."""
        if isinstance(config, SpyglassConfig):
            self._write_file(config.model_dump(mode="python"))
        else:
            self._write_file(dict(config))

    def ensure_exists(self) -> Path:
        """Write a default configuration file unless one is already present."""
        if not self._config_path.exists():
            LOGGER.debug("Creating default configuration at %s", self._config_path)
            self._write_file(SpyglassConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        """Return the raw file contents, or an empty string when absent."""
        try:
            return self._config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Failed to read configuration file: {exc}") from exc

    def record_location(self, path: str | Path) -> bool:
        """Store ``path`` as ``last_location`` when location memory is enabled.

        Returns:
            bool: ``True`` if the location was written.

        Raises:
            ConfigError: If the file cannot be read or written.
        """
        if not self.load(include_env=False).remember_location:
            return False
        stored = self._read_file()
        location = str(path)
        if stored.get("last_location") == location:
            return True
        stored["last_location"] = location
        self._write_file(stored)
        return True

    # Internal helpers -------------------------------------------------

    def _read_file(self) -> dict[str, Any]:
        text = self.read_text()
        if not text:
            return {}
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return data

    def _write_file(self, data: Mapping[str, Any]) -> None:
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        body = yaml.safe_dump(dict(data), sort_keys=False)
        text = "\n".join((*_HEADER_LINES, f"# Last updated: {stamp}", body))
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)
            self._config_path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Failed to write configuration file: {exc}") from exc


__all__ = [
    "ConfigManager",
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "IndexingOptions",
    "LoggingSettings",
    "SearchOptions",
    "SpyglassConfig",
    "Tab",
    "assign_nested",
    "flatten_for_env",
    "resolve_with_precedence",
]
