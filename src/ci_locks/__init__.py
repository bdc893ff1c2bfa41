"""
ci-locks - Advisory locks on configuration items

Serializes access to named resources during orchestrated operations
by keeping one lock file per locked resource in a shared directory.
"""

from ci_locks.core.exceptions import (
    CILockError,
    ClearLocksError,
    LockAcquisitionError,
    LockDirectoryError,
    LockNameError,
    ReleaseError,
    RollbackError,
    UnlockError,
)
from ci_locks.core.version import __version__
from ci_locks.locks import (
    AcquireResult,
    AcquireStatus,
    BatchLock,
    ConfigurationItem,
    LockManager,
    Resource,
)

__all__ = [
    "__version__",
    "AcquireResult",
    "AcquireStatus",
    "BatchLock",
    "CILockError",
    "ClearLocksError",
    "ConfigurationItem",
    "LockAcquisitionError",
    "LockDirectoryError",
    "LockManager",
    "LockNameError",
    "ReleaseError",
    "Resource",
    "RollbackError",
    "UnlockError",
]
