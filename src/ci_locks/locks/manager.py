"""Lock manager over a directory of lock files.

A lock namespace is a single directory. Each held lock is one
``<encoded id>.lock`` file in it and each such file is one held lock.
Batch acquisition is all-or-nothing from the caller's point of view:
locks taken before a failure are rolled back before returning.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from ci_locks.core.config import LockConfig
from ci_locks.core.constants import DEFAULT_LOCK_DIRECTORY
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
from ci_locks.core.logging import with_log_context
from ci_locks.locks.backends import (
    AcquireResult,
    AcquireStatus,
    ExclusiveCreateBackend,
    LockBackend,
    LockNote,
)
from ci_locks.locks.naming import LockNameCodec, create_name_codec
from ci_locks.locks.resources import Resource, ResourceLike, as_resource, unique_resources


@dataclass(frozen=True)
class LockRecord:
    """A lock file found in the namespace, for administrative display."""

    resource_id: str
    lock_path: Path
    note: str | None = None


def _as_resource_list(resources: Iterable[ResourceLike] | ResourceLike) -> list[Resource]:
    if isinstance(resources, str):
        resources = [resources]
    return unique_resources(resources)


class LockManager:
    """Advisory, non-blocking locks on named resources.

    Args:
        lock_dir: Namespace directory; created on first use, never deleted
        naming: Naming scheme ("percent" or "legacy"); see create_name_codec
        codec: Explicit codec instance, overrides ``naming``
        backend: Lock file backend (default: exclusive create)
        logger: Optional logger
    """

    def __init__(
        self,
        lock_dir: str | Path = DEFAULT_LOCK_DIRECTORY,
        *,
        naming: str | None = None,
        codec: LockNameCodec | None = None,
        backend: LockBackend | None = None,
        logger: logging.Logger | None = None,
    ):
        self.lock_dir = Path(lock_dir)
        base_logger = logger or logging.getLogger(__name__)
        self.codec = codec or create_name_codec(naming, logger=base_logger)
        self.backend = backend or ExclusiveCreateBackend()
        self.logger = with_log_context(base_logger, lock_dir=str(self.lock_dir))

    @classmethod
    def from_config(cls, config: LockConfig, logger: logging.Logger | None = None) -> LockManager:
        return cls(config.lock_path, naming=config.naming, logger=logger)

    def __repr__(self) -> str:
        return f"LockManager(lock_dir={str(self.lock_dir)!r}, naming={self.codec.name!r})"

    # ==================== SINGLE RESOURCE ====================

    def lock_path_for(self, resource: ResourceLike) -> Path:
        """Path of the lock file guarding ``resource``."""
        return self.lock_dir / self.codec.encode(as_resource(resource).id)

    def ensure_lock_dir(self) -> Path:
        """Create the namespace directory if needed and return it."""
        try:
            self.lock_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LockDirectoryError(
                "Unable to create lock directory",
                lock_dir=str(self.lock_dir),
                details=str(e),
                original_error=e,
            ) from e
        if not self.lock_dir.is_dir():
            raise LockDirectoryError("Lock directory path is not a directory", lock_dir=str(self.lock_dir))
        return self.lock_dir

    def try_lock(self, resource: ResourceLike) -> AcquireResult:
        """Attempt to lock one resource without raising for I/O failures.

        Raises:
            LockNameError: If the resource id cannot be turned into a lock name
        """
        resource = as_resource(resource)
        lock_path = self.lock_path_for(resource)
        try:
            self.ensure_lock_dir()
        except LockDirectoryError as e:
            return AcquireResult(status=AcquireStatus.IO_ERROR, lock_path=lock_path, error=e)

        result = self.backend.acquire_result(lock_path, LockNote.for_resource(resource.name))
        if result.status == AcquireStatus.ACQUIRED:
            self.logger.debug("Locked %s", resource.id, extra={"resource_id": resource.id})
        elif result.status == AcquireStatus.CONTENDED:
            self.logger.info("%s is already locked", resource.id, extra={"resource_id": resource.id})
        else:
            self.logger.warning(
                "I/O error while locking %s: %s", resource.id, result.error, extra={"resource_id": resource.id}
            )
        return result

    def lock(self, resource: ResourceLike) -> bool:
        """Lock one resource.

        Returns:
            True if this call created the lock, False if it was already held

        Raises:
            LockAcquisitionError: If the filesystem prevented the attempt
        """
        resource = as_resource(resource)
        result = self.try_lock(resource)
        if result.status == AcquireStatus.IO_ERROR:
            raise LockAcquisitionError(
                f"Failed to lock {resource.name}",
                resource_id=resource.id,
                details=str(result.error),
                original_error=result.error,
            ) from result.error
        return result.acquired

    def unlock(self, resource: ResourceLike) -> None:
        """Release one lock.

        Raises:
            UnlockError: If the lock file is missing or cannot be deleted
        """
        resource = as_resource(resource)
        self.ensure_lock_dir()
        lock_path = self.lock_path_for(resource)
        try:
            self.backend.release(lock_path)
        except OSError as e:
            details = "not locked" if isinstance(e, FileNotFoundError) else str(e)
            raise UnlockError(
                f"Failed to unlock {resource.name}",
                resource_id=resource.id,
                details=details,
                original_error=e,
            ) from e
        self.logger.debug("Unlocked %s", resource.id, extra={"resource_id": resource.id})

    def is_locked(self, resource: ResourceLike) -> bool:
        """Whether a lock file exists for ``resource``.

        Advisory only: the answer may be stale by the time it is used.
        """
        return self.backend.exists(self.lock_path_for(resource))

    def lock_note(self, resource: ResourceLike) -> str | None:
        """Diagnostic line stored in the lock file, or None if not locked."""
        return self.backend.read_note(self.lock_path_for(resource))

    # ==================== BATCH ====================

    def atomically_lock(self, resources: Iterable[ResourceLike] | ResourceLike) -> bool:
        """Lock every resource or none of them.

        Resources are tried in iteration order and the first failure stops
        the attempt. Locks taken before the failure are released again.

        Raises:
            LockNameError: If any id cannot be encoded; nothing is locked then
            RollbackError: If locks taken by this call could not be released
        """
        requested = _as_resource_list(resources)
        if not requested:
            return True

        for resource in requested:
            self.lock_path_for(resource)

        acquired: list[Resource] = []
        for resource in requested:
            if not self.try_lock(resource).acquired:
                break
            acquired.append(resource)

        if len(acquired) == len(requested):
            self.logger.debug("Locked %d resource(s) atomically", len(acquired))
            return True

        if acquired:
            self.logger.warning(
                "Could not lock all %d resource(s); rolling back %d acquired lock(s)",
                len(requested),
                len(acquired),
            )
            self._rollback(acquired)
        return False

    def _rollback(self, acquired: list[Resource]) -> None:
        failures = self._unlock_each(acquired)
        if failures:
            self.logger.error(
                "Rollback left %d lock(s) behind: %s",
                len(failures),
                ", ".join(sorted(failures)),
            )
            raise RollbackError("Failed to roll back partially acquired locks", failures)

    def unlock_all(self, resources: Iterable[ResourceLike] | ResourceLike) -> None:
        """Release every lock in ``resources``, even if some releases fail.

        Raises:
            ReleaseError: After all releases were attempted, if any failed
        """
        failures = self._unlock_each(_as_resource_list(resources))
        if failures:
            raise ReleaseError(f"Failed to unlock {len(failures)} resource(s)", failures)

    def _unlock_each(self, resources: list[Resource]) -> dict[str, Exception]:
        failures: dict[str, Exception] = {}
        for resource in resources:
            try:
                self.unlock(resource)
            except CILockError as e:
                self.logger.error("%s", e, extra={"resource_id": resource.id})
                failures[resource.id] = e
        return failures

    # ==================== NAMESPACE ====================

    def _lock_file_names(self) -> list[str]:
        lock_dir = self.ensure_lock_dir()
        try:
            with os.scandir(lock_dir) as entries:
                return [
                    entry.name
                    for entry in entries
                    if self.codec.is_lock_file(entry.name) and not entry.is_dir(follow_symlinks=False)
                ]
        except OSError as e:
            raise LockDirectoryError(
                "Unable to list lock directory",
                lock_dir=str(lock_dir),
                details=str(e),
                original_error=e,
            ) from e

    def _decoded_lock_files(self) -> list[tuple[str, Path]]:
        decoded = []
        for file_name in self._lock_file_names():
            try:
                resource_id = self.codec.decode(file_name)
            except LockNameError as e:
                self.logger.warning("Skipping undecodable lock file %s: %s", file_name, e)
                continue
            decoded.append((resource_id, self.lock_dir / file_name))
        return decoded

    def list_locks(self) -> list[str]:
        """Ids of all currently locked resources, in directory order."""
        return [resource_id for resource_id, _ in self._decoded_lock_files()]

    def list_lock_details(self) -> list[LockRecord]:
        """Like list_locks, with the path and diagnostic note of each lock."""
        return [
            LockRecord(resource_id=resource_id, lock_path=lock_path, note=self.backend.read_note(lock_path))
            for resource_id, lock_path in self._decoded_lock_files()
        ]

    def clear_locks(self) -> int:
        """Delete every lock file, whoever created it.

        Files that cannot be decoded to an id are deleted as well.

        Returns:
            Number of lock files this call deleted

        Raises:
            ClearLocksError: On the first lock file that cannot be deleted
        """
        file_names = self._lock_file_names()
        cleared = 0
        if file_names:
            self.logger.warning("Clearing %d lock(s)", len(file_names))
        for file_name in file_names:
            lock_path = self.lock_dir / file_name
            try:
                self.backend.release(lock_path)
            except FileNotFoundError:
                # Released concurrently; the end state is the same.
                self.logger.debug("Lock file %s already removed", file_name)
            except OSError as e:
                raise ClearLocksError(
                    f"Unable to delete lock file {file_name}",
                    lock_file=str(lock_path),
                    details=str(e),
                    original_error=e,
                ) from e
            else:
                cleared += 1
        return cleared


class BatchLock:
    """Context manager holding a set of locks for the duration of a block.

    Usage:
        with BatchLock(manager, ["app/db", "app/web"]) as batch:
            if not batch.acquired:
                print("Another operation holds one of the resources")
                return
            # ... work on the resources ...

    Locks are released on exit only if they were acquired here.
    """

    def __init__(self, manager: LockManager, resources: Iterable[ResourceLike] | ResourceLike):
        self.manager = manager
        self.resources = _as_resource_list(resources)
        self.acquired = False

    def __enter__(self) -> BatchLock:
        self.acquired = self.manager.atomically_lock(self.resources)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self.acquired:
            return
        self.acquired = False
        try:
            self.manager.unlock_all(self.resources)
        except ReleaseError:
            if exc_type is None:
                raise
            # The exception from the block propagates; release failures are logged by unlock_all.
            self.manager.logger.error("Locks left behind while handling %s", exc_type.__name__)
