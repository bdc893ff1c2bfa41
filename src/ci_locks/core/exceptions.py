"""Custom exceptions for ci-locks.

Acquisition failures are recoverable: a lock that is already held is a
normal negative result, and I/O problems while acquiring surface as
LockAcquisitionError. Release and administrative failures are fatal,
because a lock file that silently survives an unlock blocks every later
caller.
"""

from __future__ import annotations


class CILockError(Exception):
    """Base exception for all ci-locks errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class LockNameError(CILockError, ValueError):
    """Raised when an identifier or lock file name cannot be translated.

    Examples:
        - Empty resource identifier
        - Identifier containing the legacy reserved character
        - File name without the lock suffix
    """

    def __init__(self, message: str, value: str | None = None, codec: str | None = None, details: str | None = None):
        self.value = value
        self.codec = codec
        super().__init__(message, details)


class LockDirectoryError(CILockError):
    """Raised when the lock namespace directory cannot be created or used."""

    def __init__(
        self,
        message: str,
        lock_dir: str | None = None,
        details: str | None = None,
        original_error: Exception | None = None,
    ):
        self.lock_dir = lock_dir
        self.original_error = original_error
        super().__init__(message, details)


class LockAcquisitionError(CILockError):
    """Raised by LockManager.lock when the filesystem prevents acquisition.

    This is distinct from contention: a held lock makes lock() return False.
    """

    def __init__(
        self,
        message: str,
        resource_id: str | None = None,
        details: str | None = None,
        original_error: Exception | None = None,
    ):
        self.resource_id = resource_id
        self.original_error = original_error
        super().__init__(message, details)


class UnlockError(CILockError):
    """Raised when a lock file cannot be deleted.

    Examples:
        - Lock file does not exist
        - Permission denied on the namespace directory
    """

    def __init__(
        self,
        message: str,
        resource_id: str | None = None,
        details: str | None = None,
        original_error: Exception | None = None,
    ):
        self.resource_id = resource_id
        self.original_error = original_error
        super().__init__(message, details)


class ReleaseError(UnlockError):
    """Raised after a batch release in which one or more unlocks failed.

    Attributes:
        failures: Mapping of resource id -> the error raised for it
    """

    def __init__(self, message: str, failures: dict[str, Exception]):
        self.failures = dict(failures)
        details = ", ".join(sorted(self.failures))
        super().__init__(message, details=details)


class RollbackError(ReleaseError):
    """Raised when locks acquired by a failed batch could not be rolled back.

    The listed resources remain locked on disk and need operator attention.
    """


class ClearLocksError(CILockError):
    """Raised when clear_locks cannot delete a lock file."""

    def __init__(
        self,
        message: str,
        lock_file: str | None = None,
        details: str | None = None,
        original_error: Exception | None = None,
    ):
        self.lock_file = lock_file
        self.original_error = original_error
        super().__init__(message, details)
