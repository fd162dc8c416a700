"""
nodeflow.config.loader - Load .nodeflow.toml files.

Resolution order: DEFAULT_CONFIG, then the TOML file, then
NODEFLOW_<SECTION>_<KEY> environment variables.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from nodeflow.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG, ENV_PREFIX


class ConfigError(Exception):
    """Configuration file could not be read or parsed."""


def parse_toml_document(content: str) -> tomlkit.TOMLDocument:
    """Parse TOML text into a style-preserving tomlkit document.

    Raises:
        ConfigError: If the text is not valid TOML.
    """
    try:
        return tomlkit.parse(content)
    except TOMLKitError as e:
        raise ConfigError(f"Invalid TOML: {e}") from e


def parse_toml(content: str) -> dict[str, Any]:
    """Parse TOML text into plain Python dicts and lists."""
    return parse_toml_document(content).unwrap()


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested tables are merged key by key; any other value in ``override``
    replaces the base value.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _try_parse_env_value(value: str) -> Any:
    """Interpret an environment variable value.

    JSON arrays/objects, booleans and integers are converted; anything
    else (including malformed JSON) is returned as the raw string.
    """
    stripped = value.strip()
    if stripped.lower() in ("true", "false"):
        return stripped.lower() == "true"
    if stripped[:1] in ("[", "{"):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    try:
        return int(stripped)
    except ValueError:
        return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply NODEFLOW_<SECTION>_<KEY> variables to ``config`` in place.

    The section is the part up to the first underscore; the rest of the
    name (lower-cased) is the key, e.g. NODEFLOW_EXPORT_FILENAME sets
    ``config["export"]["filename"]``.
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        section, _, key = name[len(ENV_PREFIX) :].lower().partition("_")
        if not section or not key:
            continue
        table = config.setdefault(section, {})
        if isinstance(table, dict):
            table[key] = _try_parse_env_value(raw)
    return config


def find_config_file(start_dir: Path) -> Path | None:
    """Find .nodeflow.toml in ``start_dir`` or any parent directory."""
    current = Path(start_dir).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def load_config(config_path: Path) -> dict[str, Any]:
    """Load a config file merged over the defaults.

    Raises:
        ConfigError: If the file cannot be read or is not valid TOML.
    """
    try:
        content = Path(config_path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from e
    return merge_configs(DEFAULT_CONFIG, parse_toml(content))


def get_config(config_path: Path | None = None, start_dir: Path | None = None) -> dict[str, Any]:
    """Resolve the effective configuration.

    Args:
        config_path: Explicit config file; discovered from ``start_dir``
            (default: the working directory) when omitted.
        start_dir: Directory to start discovery from.

    Returns:
        Configuration dict with defaults, file values and env overrides applied.
    """
    if config_path is None:
        config_path = find_config_file(start_dir or Path.cwd())
    if config_path is not None:
        config = load_config(config_path)
    else:
        config = copy.deepcopy(DEFAULT_CONFIG)
    return _apply_env_overrides(config)
