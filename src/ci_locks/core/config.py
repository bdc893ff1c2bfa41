"""Configuration dataclasses for ci-locks.

These dataclasses centralize configuration options for type safety
and easy testing. They can be created from environment variables,
from command-line arguments, or used directly in code.
"""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass, field
from pathlib import Path

from ci_locks.core.constants import (
    DEFAULT_LOCK_DIRECTORY,
    DEFAULT_NAMING,
    LOCK_DIR_ENV,
    LOG_FILE_BACKUP_COUNT,
    LOG_FILE_MAX_BYTES,
    NAMING_ENV,
)


@dataclass
class LogConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level string; None defers to LOG_LEVEL, then INFO
        log_format: "text" or "json" (default: "text")
        log_file: Optional path of a rotating log file (default: None)
        file_max_bytes: Maximum size per log file (default: 10MB)
        file_backup_count: Number of backup log files (default: 5)
    """

    level: str | None = None
    log_format: str = "text"
    log_file: str | None = None
    file_max_bytes: int = LOG_FILE_MAX_BYTES
    file_backup_count: int = LOG_FILE_BACKUP_COUNT


@dataclass
class LockConfig:
    """Configuration of a lock namespace.

    Attributes:
        lock_dir: Directory holding the lock files (default: "locks")
        naming: Lock-name codec, "percent" or "legacy" (default: "percent")
        log: Logging configuration
    """

    lock_dir: str = DEFAULT_LOCK_DIRECTORY
    naming: str = DEFAULT_NAMING
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def lock_path(self) -> Path:
        return Path(self.lock_dir).expanduser()

    @classmethod
    def from_env(cls) -> LockConfig:
        """Create configuration from CI_LOCKS_* environment variables."""
        return cls(
            lock_dir=os.environ.get(LOCK_DIR_ENV) or DEFAULT_LOCK_DIRECTORY,
            naming=(os.environ.get(NAMING_ENV) or DEFAULT_NAMING).strip().lower(),
        )

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> LockConfig:
        """Create configuration from parsed arguments, falling back to the environment."""
        env_config = cls.from_env()
        return cls(
            lock_dir=getattr(args, "lock_dir", None) or env_config.lock_dir,
            naming=getattr(args, "naming", None) or env_config.naming,
            log=LogConfig(
                level=getattr(args, "log_level", None),
                log_format=getattr(args, "log_format", None) or "text",
                log_file=getattr(args, "log_file", None),
            ),
        )
