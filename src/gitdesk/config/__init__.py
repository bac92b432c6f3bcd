"""Configuration for gitdesk.

Configuration is read from TOML files and ``GITDESK_*`` environment
variables, merged, and validated into frozen Pydantic models.

Example:
    >>> from gitdesk.config import load_config
    >>> config = load_config()
    >>> config.repository.default_branch
    'main'
"""

from ._loader import (
    config_from_dict,
    deep_merge,
    get_user_config_path,
    load_config,
    parse_env_vars,
    read_toml_file,
)
from ._models import (
    Config,
    IdentityConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    OplogConfig,
    RepositoryConfig,
)

__all__ = [
    "Config",
    "IdentityConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "OplogConfig",
    "RepositoryConfig",
    "config_from_dict",
    "deep_merge",
    "get_user_config_path",
    "load_config",
    "parse_env_vars",
    "read_toml_file",
]
