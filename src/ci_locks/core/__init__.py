"""Core module - Foundation components with no internal dependencies.

This module provides the basic building blocks used throughout the package:
- Version information
- Custom exceptions
- Configuration dataclasses
- Constants and defaults
"""

from ci_locks.core.version import __version__

from ci_locks.core.exceptions import (
    CILockError,
    LockNameError,
    LockDirectoryError,
    LockAcquisitionError,
    UnlockError,
    ReleaseError,
    RollbackError,
    ClearLocksError,
)

from ci_locks.core.config import (
    LockConfig,
    LogConfig,
)

from ci_locks.core.constants import (
    DEFAULT_LOCK_DIRECTORY,
    LOCK_FILE_SUFFIX,
    DEFAULT_NAMING,
    NAMING_CHOICES,
    LOCK_DIR_ENV,
    NAMING_ENV,
)

__all__ = [
    # Version
    '__version__',
    # Exceptions
    'CILockError',
    'LockNameError',
    'LockDirectoryError',
    'LockAcquisitionError',
    'UnlockError',
    'ReleaseError',
    'RollbackError',
    'ClearLocksError',
    # Config dataclasses
    'LockConfig',
    'LogConfig',
    # Constants
    'DEFAULT_LOCK_DIRECTORY',
    'LOCK_FILE_SUFFIX',
    'DEFAULT_NAMING',
    'NAMING_CHOICES',
    'LOCK_DIR_ENV',
    'NAMING_ENV',
]
