"""Unit tests for lockedfile.leak: leak guards and leak handlers."""
from __future__ import annotations

import gc
import os
from pathlib import Path
from typing import Callable
from unittest.mock import patch

import pytest

from lockedfile import leak
from lockedfile.errors import LockLeakError
from lockedfile.file import create, open_read
from lockedfile.leak import LeakGuard, default_leak_handler, set_leak_handler
from lockedfile.settings import configure


class _Owner:
    """Weak-referenceable stand-in for a handle."""


@pytest.fixture()
def existing(tmp_path: Path) -> Path:
    path = tmp_path / "held.txt"
    path.write_bytes(b"x")
    return path


# ---------------------------------------------------------------------------
# LeakGuard
# ---------------------------------------------------------------------------


class TestLeakGuard:
    def test_reports_when_owner_collected(self, leak_reports: list[str]) -> None:
        owner = _Owner()
        guard = LeakGuard(owner, "some/path")
        assert guard.armed is True
        del owner
        gc.collect()
        assert leak_reports == ["some/path"]
        assert guard.armed is False

    def test_disarmed_guard_does_not_report(self, leak_reports: list[str]) -> None:
        owner = _Owner()
        guard = LeakGuard(owner, "some/path")
        guard.disarm()
        del owner
        gc.collect()
        assert leak_reports == []

    def test_disarm_twice_is_safe(self) -> None:
        owner = _Owner()
        guard = LeakGuard(owner, "p")
        guard.disarm()
        guard.disarm()
        assert guard.armed is False


# ---------------------------------------------------------------------------
# Handles
# ---------------------------------------------------------------------------


class TestHandleLeaks:
    def test_unclosed_handle_is_reported(self, existing: Path, leak_reports: list[str]) -> None:
        f = open_read(existing)
        fd = f.fileno()
        del f
        gc.collect()
        assert leak_reports == [str(existing)]
        os.close(fd)

    def test_guard_does_not_release_the_lock(
        self, existing: Path, can_lock: Callable[[Path, bool], bool]
    ) -> None:
        f = create(existing)
        fd = f.fileno()
        del f
        gc.collect()
        assert can_lock(existing, False) is False
        os.close(fd)

    def test_closed_handle_is_not_reported(self, existing: Path, leak_reports: list[str]) -> None:
        f = open_read(existing)
        f.close()
        del f
        gc.collect()
        assert leak_reports == []

    def test_context_managed_handle_is_not_reported(
        self, existing: Path, leak_reports: list[str]
    ) -> None:
        with open_read(existing):
            pass
        gc.collect()
        assert leak_reports == []


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


class TestHandlers:
    def test_set_leak_handler_returns_previous(self) -> None:
        first: list[str] = []
        previous = set_leak_handler(first.append)
        try:
            assert set_leak_handler(None) == first.append
        finally:
            set_leak_handler(previous)

    def test_none_restores_default_handler(self) -> None:
        previous = set_leak_handler(None)
        try:
            with patch.object(leak, "default_leak_handler") as default_mock:
                leak._report("p")
            default_mock.assert_called_once_with("p")
        finally:
            set_leak_handler(previous)

    def test_warn_policy_emits_resource_warning(self) -> None:
        configure(leak_policy="warn")
        with pytest.warns(ResourceWarning, match="became unreachable without a call to close"):
            default_leak_handler("/tmp/leaked.lock")

    def test_abort_policy_logs_and_exits(
        self, capsys: pytest.CaptureFixture[str], caplog: pytest.LogCaptureFixture
    ) -> None:
        configure(leak_policy="abort")
        with patch.object(leak.os, "_exit") as exit_mock:
            default_leak_handler("/tmp/leaked.lock")
        exit_mock.assert_called_once_with(2)
        assert "fatal: lockedfile.LockedFile /tmp/leaked.lock" in capsys.readouterr().err
        assert any(record.levelname == "CRITICAL" for record in caplog.records)

    def test_leak_error_message_names_path(self) -> None:
        error = LockLeakError("/var/lib/state")
        assert error.path == "/var/lib/state"
        assert "/var/lib/state" in str(error)
        assert isinstance(error, RuntimeError)

    def test_invalid_settings_fall_back_to_abort(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setenv("LOCKEDFILE_LEAK_POLICY", "bogus")
        with patch.object(leak.os, "_exit") as exit_mock:
            default_leak_handler("/tmp/leaked.lock")
        exit_mock.assert_called_once_with(2)
        assert "fatal: lockedfile.LockedFile /tmp/leaked.lock" in capsys.readouterr().err
