"""Locking subsystem for cross-process coordination.

This package centralizes lock naming, lock file creation and the
batch acquire/rollback logic behind a stable API.
"""

from ci_locks.locks.backends import (
    AcquireResult,
    AcquireStatus,
    ExclusiveCreateBackend,
    LockNote,
)
from ci_locks.locks.manager import BatchLock, LockManager, LockRecord
from ci_locks.locks.naming import (
    LegacyLockNameCodec,
    PercentLockNameCodec,
    create_name_codec,
)
from ci_locks.locks.resources import ConfigurationItem, Resource

__all__ = [
    "AcquireResult",
    "AcquireStatus",
    "BatchLock",
    "ConfigurationItem",
    "ExclusiveCreateBackend",
    "LegacyLockNameCodec",
    "LockManager",
    "LockNote",
    "LockRecord",
    "PercentLockNameCodec",
    "Resource",
    "create_name_codec",
]
