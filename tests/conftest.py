"""Pytest configuration and fixtures for ci-locks tests"""

import pytest

from ci_locks.locks.manager import LockManager


@pytest.fixture(autouse=True)
def _isolated_lock_env(monkeypatch):
    """Keep CI_LOCKS_* settings from the developer's shell out of the tests"""
    monkeypatch.delenv("CI_LOCKS_DIR", raising=False)
    monkeypatch.delenv("CI_LOCKS_NAMING", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)


@pytest.fixture
def lock_dir(tmp_path):
    """Per-test lock namespace directory (not created yet)"""
    return tmp_path / "locks"


@pytest.fixture
def manager(lock_dir):
    """LockManager on a fresh namespace"""
    return LockManager(lock_dir)
