"""Layering of configuration sources into a validated ``SpyglassConfig``."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Iterable, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import SpyglassConfig

ENV_PREFIX = "SPYGLASS__"
_ENV_SEPARATOR = "__"


def resolve_with_precedence(
    *,
    defaults: SpyglassConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> SpyglassConfig:
    """Validate ``defaults`` overlaid by the file, environment, and CLI layers in turn.

    Keys in any layer may be dotted (``"indexing.skip_hidden"``) or nested.

    Raises:
        ConfigError: If a layer is malformed or the merged values fail validation.
    """
    merged = defaults.model_dump(mode="python")
    layers = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for source_name, layer in layers:
        if layer is not None:
            merged = _deep_merge(merged, _expand_dotted(layer, source_name))

    try:
        return SpyglassConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def parse_env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``SPYGLASS__SECTION__KEY`` variables into a nested override mapping.

    Values are parsed as YAML literals so ``"false"`` and ``"25"`` become a bool
    and an int; anything that is not valid YAML is kept as the raw string.
    """
    overrides: dict[str, Any] = {}
    for key, raw in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = [part.lower() for part in key[len(ENV_PREFIX) :].split(_ENV_SEPARATOR) if part]
        if not path:
            continue
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        assign_nested(overrides, path, value, source_name="environment")
    return overrides


def flatten_for_env(config: SpyglassConfig) -> Dict[str, str]:
    """Render every leaf of ``config`` as the environment variable that would set it."""
    flat: Dict[str, str] = {}
    pending: list[tuple[list[str], Any]] = [([], config.model_dump(mode="python"))]
    while pending:
        path, value = pending.pop()
        if isinstance(value, dict):
            pending.extend((path + [str(key)], child) for key, child in value.items())
            continue
        env_key = ENV_PREFIX + _ENV_SEPARATOR.join(part.upper() for part in path)
        flat[env_key] = _render_env_value(value)
    return flat


def assign_nested(
    target: dict[str, Any],
    path: Iterable[str],
    value: Any,
    *,
    source_name: str = "cli",
) -> None:
    """Set ``value`` at ``path`` inside ``target``, creating sections as needed.

    Mapping values are merged into an existing section rather than replacing it.

    Raises:
        ConfigError: If a scalar already sits where a section is required.
    """
    *sections, leaf = list(path)
    node = target
    for section in sections:
        child = node.setdefault(section, {})
        if child is None:
            child = node[section] = {}
        if not isinstance(child, dict):
            dotted = ".".join([*sections, leaf])
            raise ConfigError(f"{source_name.capitalize()} key {dotted} is not inside a section.")
        node = child

    if isinstance(value, MappingABC):
        current = node.get(leaf)
        base = current if isinstance(current, dict) else {}
        node[leaf] = _deep_merge(base, _expand_dotted(value, source_name))
    else:
        node[leaf] = value


def _expand_dotted(layer: Mapping[str, Any], source_name: str) -> dict[str, Any]:
    if not isinstance(layer, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")
    expanded: dict[str, Any] = {}
    for key, value in layer.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        assign_nested(expanded, key.split("."), value, source_name=source_name)
    return expanded


def _deep_merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    result = deepcopy(dict(base))
    for key, value in overlay.items():
        existing = result.get(key)
        if isinstance(existing, dict) and isinstance(value, MappingABC):
            result[key] = _deep_merge(existing, value)
        else:
            result[key] = deepcopy(value)
    return result


def _render_env_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, list):
        return yaml.safe_dump(value, default_flow_style=True).strip()
    return str(value)


__all__ = [
    "ENV_PREFIX",
    "assign_nested",
    "flatten_for_env",
    "parse_env_overrides",
    "resolve_with_precedence",
]
