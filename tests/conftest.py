"""Shared fixtures for lockedfile tests.

Every test runs with a recording leak handler installed, so a leaked handle
is recorded instead of terminating the test process, and with settings
reset to the environment defaults.
"""
from __future__ import annotations

import fcntl
import os
from pathlib import Path
from typing import Callable, Iterator

import pytest

from lockedfile import leak, settings


@pytest.fixture(autouse=True)
def leak_reports() -> Iterator[list[str]]:
    """Paths reported as leaked during the test."""
    reports: list[str] = []
    previous = leak.set_leak_handler(reports.append)
    yield reports
    leak.set_leak_handler(previous)


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in ("LOCKEDFILE_LEAK_POLICY", "LOCKEDFILE_DEFAULT_PERM", "LOCKEDFILE_POLL_INTERVAL"):
        monkeypatch.delenv(name, raising=False)
    settings.reset_settings()
    yield
    settings.reset_settings()


def _try_lock(path: Path, op: int) -> bool:
    fd = os.open(str(path), os.O_RDONLY)
    try:
        try:
            fcntl.flock(fd, op | fcntl.LOCK_NB)
        except BlockingIOError:
            return False
        fcntl.flock(fd, fcntl.LOCK_UN)
        return True
    finally:
        os.close(fd)


@pytest.fixture()
def can_lock() -> Callable[[Path, bool], bool]:
    """Return a check telling whether *path* could be locked right now.

    ``can_lock(path, exclusive)`` tries a non-blocking lock from a fresh
    descriptor and releases it immediately.
    """

    def check(path: Path, exclusive: bool) -> bool:
        return _try_lock(path, fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)

    return check
