"""Lock file backend.

Design principles:
- Lock truth is the existence of the lock file, nothing else.
- Acquisition is a single exclusive-create attempt (O_CREAT | O_EXCL);
  the filesystem decides the winner, no polling or retry happens here.
- The note written into the file is diagnostic only and is never parsed
  to decide ownership.
"""

from __future__ import annotations

import contextlib
import os
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Protocol

from ci_locks.core.constants import LOCK_FILE_MODE


def _utcnow_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds")


def _write_all(fd: int, payload: bytes) -> None:
    """Write complete payload to fd, handling short writes."""
    total_written = 0
    while total_written < len(payload):
        written = os.write(fd, payload[total_written:])
        if written <= 0:
            raise OSError("short write while persisting lock note")
        total_written += written


class AcquireStatus(Enum):
    """Outcome of a single acquisition attempt."""

    ACQUIRED = "acquired"
    CONTENDED = "contended"  # Lock file already present
    IO_ERROR = "io_error"  # Filesystem refused the attempt


@dataclass
class AcquireResult:
    """Result of one acquisition attempt.

    ``error`` is only set for IO_ERROR.
    """

    status: AcquireStatus
    lock_path: Path | None = None
    error: Exception | None = None

    @property
    def acquired(self) -> bool:
        return self.status == AcquireStatus.ACQUIRED


@dataclass
class LockNote:
    """Human-readable line stored inside a lock file."""

    resource_name: str
    created_at: str

    @classmethod
    def for_resource(cls, resource_name: str) -> LockNote:
        return cls(resource_name=resource_name, created_at=_utcnow_iso())

    def to_line(self) -> str:
        return f"Locking {self.resource_name} on {self.created_at}\n"


class LockBackend(Protocol):
    """Backend abstraction for lock file creation and removal."""

    name: str

    def acquire_result(self, lock_path: Path, note: LockNote) -> AcquireResult:
        """Try creating the lock file once. Never raises for I/O errors."""

    def release(self, lock_path: Path) -> None:
        """Delete the lock file. Raises OSError on any failure."""

    def exists(self, lock_path: Path) -> bool:
        """Whether the lock file is currently present."""

    def read_note(self, lock_path: Path) -> str | None:
        """Return the diagnostic line, or None if the lock file is absent."""


class ExclusiveCreateBackend:
    """Backend relying on the atomicity of exclusive file creation.

    Correct wherever the filesystem honours O_EXCL, which covers local
    filesystems and NFSv3+.
    """

    name = "exclusive-create"

    def __init__(self, mode: int = LOCK_FILE_MODE):
        self.mode = mode

    def acquire_result(self, lock_path: Path, note: LockNote) -> AcquireResult:
        try:
            fd = os.open(str(lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, self.mode)
        except FileExistsError:
            return AcquireResult(status=AcquireStatus.CONTENDED, lock_path=lock_path)
        except (OSError, ValueError) as e:
            return AcquireResult(status=AcquireStatus.IO_ERROR, lock_path=lock_path, error=e)

        try:
            _write_all(fd, note.to_line().encode("utf-8"))
            os.fsync(fd)
        except OSError as e:
            # The file was created by us, so removing it cannot drop someone else's lock.
            with contextlib.suppress(OSError):
                os.close(fd)
            with contextlib.suppress(OSError):
                lock_path.unlink()
            return AcquireResult(status=AcquireStatus.IO_ERROR, lock_path=lock_path, error=e)

        os.close(fd)
        return AcquireResult(status=AcquireStatus.ACQUIRED, lock_path=lock_path)

    def release(self, lock_path: Path) -> None:
        lock_path.unlink()

    def exists(self, lock_path: Path) -> bool:
        return lock_path.exists()

    def read_note(self, lock_path: Path) -> str | None:
        try:
            with open(lock_path, encoding="utf-8", errors="replace") as f:
                return f.readline().rstrip("\n")
        except FileNotFoundError:
            return None
