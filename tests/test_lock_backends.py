"""Tests for the exclusive-create lock file backend."""

from __future__ import annotations

import errno
import multiprocessing
import os
import tempfile
from pathlib import Path

import pytest

import ci_locks.locks.backends as backends_module
from ci_locks.locks.backends import AcquireStatus, ExclusiveCreateBackend, LockNote


def _race_worker(lock_path: str, barrier, results) -> None:
    barrier.wait()
    result = ExclusiveCreateBackend().acquire_result(Path(lock_path), LockNote.for_resource(f"pid-{os.getpid()}"))
    results.put(result.status.value)


def test_acquire_creates_file_with_note() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        lock_path = Path(tmpdir) / "app.lock"
        backend = ExclusiveCreateBackend()

        note = LockNote(resource_name="app", created_at="2026-01-01T00:00:00+00:00")

        result = backend.acquire_result(lock_path, note)

        assert result.status == AcquireStatus.ACQUIRED
        assert result.acquired is True
        assert result.error is None
        assert lock_path.read_text(encoding="utf-8") == "Locking app on 2026-01-01T00:00:00+00:00\n"
        assert backend.read_note(lock_path) == "Locking app on 2026-01-01T00:00:00+00:00"


def test_second_acquire_is_contended_and_keeps_first_note() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        lock_path = Path(tmpdir) / "app.lock"
        backend = ExclusiveCreateBackend()
        backend.acquire_result(lock_path, LockNote.for_resource("first"))

        result = backend.acquire_result(lock_path, LockNote.for_resource("second"))

        assert result.status == AcquireStatus.CONTENDED
        assert result.acquired is False
        assert "first" in backend.read_note(lock_path)


def test_missing_directory_is_reported_as_io_error() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        lock_path = Path(tmpdir) / "missing" / "app.lock"

        result = ExclusiveCreateBackend().acquire_result(lock_path, LockNote.for_resource("app"))

        assert result.status == AcquireStatus.IO_ERROR
        assert isinstance(result.error, FileNotFoundError)


def test_note_write_failure_removes_created_file(monkeypatch: pytest.MonkeyPatch) -> None:
    def _failing_write(fd: int, payload: bytes) -> None:
        del fd, payload
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(backends_module, "_write_all", _failing_write)

    with tempfile.TemporaryDirectory() as tmpdir:
        lock_path = Path(tmpdir) / "app.lock"
        result = ExclusiveCreateBackend().acquire_result(lock_path, LockNote.for_resource("app"))

        assert result.status == AcquireStatus.IO_ERROR
        assert "No space left" in str(result.error)
        assert not lock_path.exists()


def test_short_writes_are_completed(monkeypatch: pytest.MonkeyPatch) -> None:
    real_write = os.write

    def _one_byte_write(fd: int, payload: bytes) -> int:
        return real_write(fd, payload[:1])

    monkeypatch.setattr(backends_module.os, "write", _one_byte_write)

    with tempfile.TemporaryDirectory() as tmpdir:
        lock_path = Path(tmpdir) / "app.lock"
        note = LockNote(resource_name="app", created_at="now")
        result = ExclusiveCreateBackend().acquire_result(lock_path, note)

        assert result.acquired
        assert lock_path.read_text(encoding="utf-8") == note.to_line()


def test_release_and_exists() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        lock_path = Path(tmpdir) / "app.lock"
        backend = ExclusiveCreateBackend()
        backend.acquire_result(lock_path, LockNote.for_resource("app"))
        assert backend.exists(lock_path)

        backend.release(lock_path)

        assert not backend.exists(lock_path)
        assert backend.read_note(lock_path) is None
        with pytest.raises(FileNotFoundError):
            backend.release(lock_path)


def test_only_one_process_wins_a_race() -> None:
    ctx = multiprocessing.get_context("spawn")
    workers = 4
    with tempfile.TemporaryDirectory() as tmpdir:
        lock_path = str(Path(tmpdir) / "contested.lock")
        barrier = ctx.Barrier(workers)
        results = ctx.Queue()
        processes = [ctx.Process(target=_race_worker, args=(lock_path, barrier, results)) for _ in range(workers)]
        for process in processes:
            process.start()
        for process in processes:
            process.join(timeout=30)

        statuses = sorted(results.get(timeout=5) for _ in range(workers))

    assert statuses.count(AcquireStatus.ACQUIRED.value) == 1
    assert statuses.count(AcquireStatus.CONTENDED.value) == workers - 1
