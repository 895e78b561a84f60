"""Settings loading for extension point registries."""

from __future__ import annotations

import configparser
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import configupdater
import toml

from extpoints.exceptions import ConfigurationError
from extpoints.registry import Registry

log = logging.getLogger(__name__)

CONFIG_ENV = "EXTPOINTS_CONFIG"
MAIN_SECTION = "extpoints"
POINT_SECTION_PREFIX = "point:"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class Settings:
    """Runtime settings for logging, dispatch and initially disabled extensions."""

    log_level: str = "INFO"
    log_file: Optional[str] = None
    isolate_failures: bool = True
    disabled: Dict[str, List[str]] = field(default_factory=dict)


def _strip_comment(val: str) -> str:
    """Remove inline comments after # or ;"""
    return val.split("#", 1)[0].split(";", 1)[0].strip()


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for '{key}': {value!r}")


def _parse_level(value: Any) -> str:
    level = str(value).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"Unknown log level: {value!r}")
    return level


def _split_ids(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _settings_from_main(main: Mapping[str, Any], disabled: Dict[str, List[str]]) -> Settings:
    settings = Settings(disabled=disabled)
    if "log_level" in main:
        settings.log_level = _parse_level(main["log_level"])
    if main.get("log_file"):
        settings.log_file = str(main["log_file"])
    if "isolate_failures" in main:
        settings.isolate_failures = _parse_bool(main["isolate_failures"], "isolate_failures")
    return settings


def _load_ini(config_path: Path) -> Settings:
    updater = configupdater.ConfigUpdater()
    try:
        updater.read(config_path, encoding="utf-8")
    except (configparser.Error, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Failed to parse config '{config_path}': {exc}") from exc

    main: Dict[str, str] = {}
    disabled: Dict[str, List[str]] = {}
    for section_name in updater.sections():
        section = updater[section_name]
        values = {key.lower(): _strip_comment(option.value or "") for key, option in section.items()}
        if section_name == MAIN_SECTION:
            main = values
        elif section_name.startswith(POINT_SECTION_PREFIX):
            point_id = section_name[len(POINT_SECTION_PREFIX) :]
            disabled[point_id] = _split_ids(values.get("disabled", ""))
        else:
            log.warning("Ignoring unknown section '%s' in '%s'", section_name, config_path)

    return _settings_from_main(main, disabled)


def _load_toml(config_path: Path) -> Settings:
    try:
        data = toml.load(config_path)
    except toml.TomlDecodeError as exc:
        raise ConfigurationError(f"Failed to parse config '{config_path}': {exc}") from exc

    disabled: Dict[str, List[str]] = {}
    for point_id, table in data.get("points", {}).items():
        ids = table.get("disabled", []) if isinstance(table, dict) else []
        if isinstance(ids, str):
            ids = _split_ids(ids)
        disabled[str(point_id)] = [str(item) for item in ids]

    return _settings_from_main(data.get(MAIN_SECTION, {}), disabled)


def load_settings(path: Optional[str | os.PathLike[str]] = None) -> Settings:
    """
    Load settings from an INI or TOML file.

    Args:
        path: Config file; falls back to ``$EXTPOINTS_CONFIG``, then defaults

    Returns:
        Settings: Parsed settings

    Raises:
        ConfigurationError: the file is missing or cannot be parsed
    """
    raw_path = path or os.environ.get(CONFIG_ENV)
    if not raw_path:
        return Settings()

    config_path = Path(raw_path)
    if not config_path.is_file():
        raise ConfigurationError(f"config not found: '{config_path}'")

    if config_path.suffix.lower() == ".toml":
        settings = _load_toml(config_path)
    else:
        settings = _load_ini(config_path)

    log.debug("Loaded settings from '%s': %s", config_path, settings)
    return settings


def apply_settings(registry: Registry, settings: Settings) -> Registry:
    """Apply dispatch isolation and disabled extension ids to ``registry``."""
    registry.set_isolation(settings.isolate_failures)
    for point_id, extension_ids in settings.disabled.items():
        target = registry.point(point_id)
        for extension_id in extension_ids:
            target.disable(extension_id)
            log.debug("Disabled extension '%s' on point '%s' from settings", extension_id, point_id)
    return registry
