"""Configuration models.

Each TOML section maps onto one frozen Pydantic model; ``Config`` aggregates
them.
"""

from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from gitdesk.models import Identity


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
        max_bytes: Size at which the log file is rotated. Rotation needs
            ``file`` and ``backup_count`` as well.
        backup_count: Number of rotated log files to keep.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.WARNING
    format: LogFormat = LogFormat.TEXT
    file: str = ""
    max_bytes: int | None = Field(default=None, gt=0)
    backup_count: int | None = Field(default=None, ge=0)


class OplogConfig(BaseModel):
    """Operation log budgets.

    Attributes:
        max_chars: Character budget checked before each append.
        max_lines: Number of non-empty lines kept when the budget is exceeded.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    max_chars: int = Field(default=10_000, gt=0)
    max_lines: int = Field(default=1_000, gt=0)


class RepositoryConfig(BaseModel):
    """Repository lifecycle and query settings.

    Attributes:
        default_branch: Branch HEAD points at in a newly created repository.
        placeholder_commit: Whether creation writes and commits a placeholder file.
        placeholder_file: Name of the placeholder file.
        include_ignored: Whether ignored files are reported as changes.
        commit_log_limit: Number of commits loaded by history queries.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    default_branch: str = Field(default="main", min_length=1)
    placeholder_commit: bool = True
    placeholder_file: str = Field(default="README.md", min_length=1)
    include_ignored: bool = False
    commit_log_limit: int = Field(default=50, gt=0)


class IdentityConfig(BaseModel):
    """Values used when the repository configuration has no identity."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    fallback_name: str = "Unknown"
    fallback_email: str = "unknown@example.com"

    @property
    def fallback(self) -> Identity:
        return Identity(name=self.fallback_name, email=self.fallback_email)


class Config(BaseModel):
    """Complete gitdesk configuration.

    Use ``gitdesk.config.load_config()`` to build one from all sources, or
    ``Config()`` for the defaults.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    oplog: OplogConfig = Field(default_factory=OplogConfig)
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
