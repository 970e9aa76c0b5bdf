"""Platform lock primitive.

Opens a descriptor and applies an advisory lock to it as one step, and
undoes both as one step.  ``fcntl.flock`` is used on POSIX; elsewhere
(Windows) ``portalocker`` provides the shared and exclusive locks.

Acquisition blocks until the lock is granted; there is no timeout.

Functions
---------
- lock_mode_for  — the lock mode implied by ``os.open`` flags
- acquire        — open a path and lock the resulting descriptor
- release        — unlock and close a descriptor
"""
from __future__ import annotations

import contextlib
import enum
import importlib
import io
import logging
import os
import time

import portalocker

from lockedfile.settings import get_settings

logger = logging.getLogger(__name__)


def _import_optional(name: str) -> object | None:
    try:  # pragma: no cover - platform dependent
        return importlib.import_module(name)
    except ImportError:  # pragma: no cover - platform dependent
        return None


fcntl_module = _import_optional("fcntl")

_WRITE_FLAGS = os.O_WRONLY | os.O_RDWR


class LockMode(str, enum.Enum):
    """Kind of advisory lock held by a handle."""

    SHARED = "shared"
    EXCLUSIVE = "exclusive"


def lock_mode_for(flags: int) -> LockMode:
    """Return EXCLUSIVE if *flags* request write access, SHARED otherwise."""
    if flags & _WRITE_FLAGS:
        return LockMode.EXCLUSIVE
    return LockMode.SHARED


def _as_os_error(exc: portalocker.LockException) -> OSError:
    cause = exc.args[0] if exc.args else None
    if isinstance(cause, OSError):
        return cause
    return OSError(str(exc))


def _portable_lock(fd: int, mode: LockMode) -> None:
    flags = portalocker.LOCK_EX if mode is LockMode.EXCLUSIVE else portalocker.LOCK_SH
    # Each attempt is non-blocking; contention is polled.
    interval = get_settings().poll_interval
    with io.FileIO(fd, "r", closefd=False) as handle:
        while True:
            try:
                portalocker.lock(handle, flags | portalocker.LOCK_NB)
                return
            except portalocker.AlreadyLocked:
                time.sleep(interval)
            except portalocker.LockException as exc:
                raise _as_os_error(exc) from exc


def _portable_unlock(fd: int) -> None:
    with io.FileIO(fd, "r", closefd=False) as handle:
        try:
            portalocker.unlock(handle)
        except portalocker.LockException as exc:
            raise _as_os_error(exc) from exc


def _lock(fd: int, mode: LockMode) -> None:
    if fcntl_module is None:
        _portable_lock(fd, mode)
        return
    op = fcntl_module.LOCK_EX if mode is LockMode.EXCLUSIVE else fcntl_module.LOCK_SH
    fcntl_module.flock(fd, op)


def _unlock(fd: int) -> None:
    if fcntl_module is None:
        _portable_unlock(fd)
        return
    fcntl_module.flock(fd, fcntl_module.LOCK_UN)


def acquire(path: str, flags: int, perm: int) -> int:
    """Open *path* like :func:`os.open` and lock the descriptor.

    The lock is exclusive when *flags* include ``os.O_WRONLY`` or
    ``os.O_RDWR`` and shared otherwise.  Blocks until the lock is granted.

    Parameters
    ----------
    path:
        File to open.
    flags:
        ``os.O_*`` flags passed to :func:`os.open`.
    perm:
        Permission bits (before umask) for a newly created file.

    Returns
    -------
    int
        A locked descriptor owned by the caller.

    Raises
    ------
    OSError
        If opening or locking fails.  No descriptor is left open.
    """
    mode = lock_mode_for(flags)
    fd = os.open(path, flags | getattr(os, "O_BINARY", 0), perm)
    try:
        _lock(fd, mode)
    except BaseException:
        os.close(fd)
        raise
    logger.debug("acquired %s lock on %s (fd=%d)", mode.value, path, fd)
    return fd


def release(fd: int) -> None:
    """Unlock and close *fd*.

    The descriptor is closed even if unlocking fails; the unlock error is
    then the one raised.
    """
    try:
        _unlock(fd)
    except BaseException:
        with contextlib.suppress(OSError):
            os.close(fd)
        raise
    os.close(fd)
    logger.debug("released lock (fd=%d)", fd)
