"""Configuration management — TOML config at ~/.config/tagstore/tagstore.toml."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import tomli_w

from tagstore.core.exceptions import ConfigError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

_DEFAULT_CONFIG: dict[str, Any] = {
    "general": {
        "data_dir": "~/.local/share/tagstore",
    },
    "database": {
        "filename": "tagstore.db",
    },
    "query": {
        "default_page_size": 20,
    },
    "logging": {
        "level": "WARNING",
    },
}


def get_config_dir() -> Path:
    """Return the config directory, creating it if needed."""
    config_dir = Path(os.environ.get("TAGSTORE_CONFIG_DIR", "~/.config/tagstore")).expanduser()
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Return the path to the config TOML file."""
    return get_config_dir() / "tagstore.toml"


def get_data_dir(config: dict[str, Any] | None = None) -> Path:
    """Return the data directory, creating it if needed."""
    if config is None:
        config = load_config()
    data_dir = Path(config.get("general", {}).get("data_dir", "~/.local/share/tagstore")).expanduser()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_database_path(config: dict[str, Any] | None = None) -> Path:
    """Return the SQLite database file path inside the data directory."""
    if config is None:
        config = load_config()
    filename = config.get("database", {}).get("filename", "tagstore.db")
    return get_data_dir(config) / filename


def load_config() -> dict[str, Any]:
    """Load configuration from TOML file, returning defaults if not found."""
    config_path = get_config_path()
    if not config_path.exists():
        return _deep_copy_dict(_DEFAULT_CONFIG)
    try:
        with open(config_path, "rb") as f:
            user_config = tomllib.load(f)
        return _merge_config(_deep_copy_dict(_DEFAULT_CONFIG), user_config)
    except Exception as e:
        raise ConfigError(f"Failed to load config: {e}") from e


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to TOML file."""
    config_path = get_config_path()
    try:
        with open(config_path, "wb") as f:
            tomli_w.dump(config, f)
    except Exception as e:
        raise ConfigError(f"Failed to save config: {e}") from e


def update_config(**updates: Any) -> dict[str, Any]:
    """Load config, apply nested updates, save, and return the result.

    Usage: update_config(query={"default_page_size": 50}, logging={"level": "INFO"})
    """
    config = load_config()
    for section, values in updates.items():
        if section not in config:
            config[section] = {}
        if isinstance(values, dict):
            config[section].update(values)
        else:
            config[section] = values
    save_config(config)
    return config


def _merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_config(base[key], value)
        else:
            base[key] = value
    return base


def _deep_copy_dict(d: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for k, v in d.items():
        if isinstance(v, dict):
            result[k] = _deep_copy_dict(v)
        else:
            result[k] = v
    return result
