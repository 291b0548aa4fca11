"""Settings file loader with environment variable substitution."""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .models import ShodhSettings

log = logging.getLogger(__name__)

# Environment variable naming an explicit settings file
SETTINGS_ENV_VAR = "SHODH_CONFIG"

# File names looked up in the config directory; JSON takes priority over YAML
JSON_SETTINGS_NAME = "config.json"
YAML_SETTINGS_NAME = "config.yaml"

_ENV_PATTERN = re.compile(r"\$\{([^:}]+)(?::-(.*?))?\}")


def _default_config_dir() -> Path:
    """Get the per-user shodh configuration directory."""
    xdg = os.getenv("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "shodh"


def _substitute_env_vars(value: Any) -> Any:
    """Recursively substitute environment variables in settings values.

    Supports ${ENV_VAR} and ${ENV_VAR:-default} syntax.
    """
    if isinstance(value, str):

        def replace_var(match: re.Match) -> str:
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(var_name, default_value)

        return _ENV_PATTERN.sub(replace_var, value)

    if isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]

    return value


def _read_file(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping, got {type(data).__name__}")
    return data


def find_settings_file(config_dir: Path | None = None) -> Path | None:
    """Locate the settings file to use when none is given explicitly.

    Priority order:
    1. $SHODH_CONFIG
    2. <config_dir>/config.json
    3. <config_dir>/config.yaml
    """
    env_path = os.getenv(SETTINGS_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()

    directory = config_dir or _default_config_dir()
    for name in (JSON_SETTINGS_NAME, YAML_SETTINGS_NAME):
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def load_settings(
    settings_path: Path | str | None = None,
    config_dir: Path | None = None,
) -> ShodhSettings:
    """Load and validate the settings file.

    An explicit ``settings_path`` (or $SHODH_CONFIG) must exist and parse.
    A settings file discovered in the default config directory that fails
    to load is logged and ignored so that a broken user file does not block
    searching.

    Args:
        settings_path: Explicit settings file (optional)
        config_dir: Directory searched when no explicit path is given

    Returns:
        Validated settings (all defaults when no file is found)

    Raises:
        ConfigError: If an explicit settings file is missing or invalid
    """
    explicit = settings_path is not None or bool(os.getenv(SETTINGS_ENV_VAR))
    path = Path(settings_path).expanduser() if settings_path is not None else find_settings_file(config_dir)

    if path is None:
        return ShodhSettings()

    if not path.is_file():
        if explicit:
            raise ConfigError(f"Settings file not found: {path}")
        return ShodhSettings()

    try:
        raw_settings = _read_file(path)
        settings = ShodhSettings.model_validate(_substitute_env_vars(raw_settings))
    except ConfigError:
        if explicit:
            raise
        log.warning("Ignoring settings file %s: not a mapping", path)
        return ShodhSettings()
    except (OSError, ValueError, yaml.YAMLError, ValidationError) as exc:
        if explicit:
            raise ConfigError(f"Failed to load settings from {path}: {exc}") from exc
        log.warning(
            "Failed to load settings from %s (%s): %s",
            path,
            type(exc).__name__,
            exc,
        )
        return ShodhSettings()

    log.debug("Loaded settings from %s", path)
    return settings
