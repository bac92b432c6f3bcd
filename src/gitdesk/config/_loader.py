# pyright: reportAny=false, reportExplicitAny=false
"""TOML configuration file loading and merging."""

import os
import tomllib
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import ValidationError

from gitdesk.exceptions import ConfigError, ConfigLoadError

from ._models import Config

# Environment variable -> (section, key)
ENV_VARS: dict[str, tuple[str, str]] = {
    "GITDESK_LOG_LEVEL": ("logging", "level"),
    "GITDESK_LOG_FORMAT": ("logging", "format"),
    "GITDESK_LOG_FILE": ("logging", "file"),
}


def get_user_config_path() -> Path:
    r"""Get the platform-specific user config file path.

    - Linux: ``~/.config/gitdesk/config.toml``
    - macOS: ``~/Library/Application Support/gitdesk/config.toml``
    - Windows: ``%APPDATA%\gitdesk\config.toml``

    The path is returned regardless of whether the file exists.
    """
    return platformdirs.user_config_path("gitdesk") / "config.toml"


def read_toml_file(path: Path) -> dict[str, Any]:
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(msg, path=path, line=e.lineno, column=e.colno) from e


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two configuration dictionaries.

    Dictionaries are merged recursively; any other value in ``override``
    replaces the one in ``base``. Neither input is modified.
    """
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result


def parse_env_vars(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Collect configuration overrides from ``GITDESK_*`` environment variables.

    ``GITDESK_DEBUG`` set to any non-empty value forces the debug log level
    and wins over ``GITDESK_LOG_LEVEL``.
    """
    env = os.environ if environ is None else environ
    result: dict[str, Any] = {}
    for name, (section, key) in ENV_VARS.items():
        value = env.get(name)
        if value:
            result.setdefault(section, {})[key] = value.lower() if key != "file" else value
    if env.get("GITDESK_DEBUG"):
        result.setdefault("logging", {})["level"] = "debug"
    return result


def config_from_dict(data: dict[str, Any], *, source: str = "<dict>") -> Config:
    """Validate a configuration dictionary.

    Raises:
        ConfigError: If any value fails validation.
    """
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        issues = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        msg = f"Invalid configuration in {source}: {issues}"
        raise ConfigError(msg) from e


def load_config(
    *,
    config_path: Path | None = None,
    include_user: bool = True,
    include_env: bool = True,
    environ: dict[str, str] | None = None,
) -> Config:
    """Load merged configuration from all sources.

    Sources are merged in precedence order defaults -> user file ->
    environment -> explicit file.

    Args:
        config_path: Explicit config file (``--config``). Must exist.
        include_user: Read the user config file when it exists.
        include_env: Apply ``GITDESK_*`` environment overrides.
        environ: Environment mapping to read instead of ``os.environ``.

    Returns:
        Validated configuration.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ConfigLoadError: If a config file cannot be parsed.
        ConfigError: If the merged configuration is invalid.
    """
    data: dict[str, Any] = {}
    sources: list[str] = []

    if include_user:
        user_path = get_user_config_path()
        if user_path.is_file():
            data = deep_merge(data, read_toml_file(user_path))
            sources.append(str(user_path))

    if include_env:
        env_values = parse_env_vars(environ)
        if env_values:
            data = deep_merge(data, env_values)
            sources.append("environment")

    if config_path is not None:
        if not config_path.is_file():
            msg = f"Config file not found: {config_path}"
            raise FileNotFoundError(msg)
        data = deep_merge(data, read_toml_file(config_path))
        sources.append(str(config_path))

    return config_from_dict(data, source=", ".join(sources) or "defaults")
