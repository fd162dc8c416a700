"""
nodeflow.config - Configuration loading and defaults
"""

from nodeflow.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG
from nodeflow.config.loader import (
    ConfigError,
    _apply_env_overrides,
    _try_parse_env_value,
    find_config_file,
    get_config,
    load_config,
    merge_configs,
    parse_toml,
    parse_toml_document,
)

__all__ = [
    "load_config",
    "find_config_file",
    "get_config",
    "merge_configs",
    "parse_toml",
    "parse_toml_document",
    "ConfigError",
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "_apply_env_overrides",
    "_try_parse_env_value",
]
