"""Constants and default values for ci-locks.

This module centralizes the defaults shared by the lock manager,
the configuration layer and the command-line interface.
"""

# ==================== LOCK NAMESPACE ====================

DEFAULT_LOCK_DIRECTORY: str = "locks"  # Relative to the working directory
LOCK_FILE_SUFFIX: str = ".lock"
LOCK_FILE_MODE: int = 0o644

# Historical lock-name scheme: "/" is replaced by this character
LEGACY_SEPARATOR_SUBSTITUTE: str = "$"

# ==================== NAMING CODECS ====================

NAMING_PERCENT: str = "percent"
NAMING_LEGACY: str = "legacy"
DEFAULT_NAMING: str = NAMING_PERCENT
NAMING_CHOICES: tuple[str, ...] = (NAMING_PERCENT, NAMING_LEGACY)

# ==================== ENVIRONMENT VARIABLES ====================

LOCK_DIR_ENV: str = "CI_LOCKS_DIR"
NAMING_ENV: str = "CI_LOCKS_NAMING"
LOG_LEVEL_ENV: str = "LOG_LEVEL"

# ==================== LOGGING DEFAULTS ====================

LOG_FILE_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB max per log file
LOG_FILE_BACKUP_COUNT: int = 5  # Number of backup log files to keep
VALID_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMAT_CHOICES: tuple[str, ...] = ("text", "json")
