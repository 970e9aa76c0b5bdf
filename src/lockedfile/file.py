"""Locked file handles.

A :class:`LockedFile` holds an OS advisory lock for as long as it is open.
Handles are created only by the open functions in this module; closing the
handle releases the lock.  Handles opened for writing hold an exclusive
lock, handles opened read-only hold a shared one.

If the program exits while a file is locked, the operating system releases
the lock but may not do so promptly: callers must close every handle they
open.  A handle that is garbage collected while still open is reported by
its :class:`~lockedfile.leak.LeakGuard`.

Classes
-------
- LockedFile  — an open, locked file

Functions
---------
- open_file  — like :func:`os.open`, but returns a locked handle
- open_read  — read-only, shared lock
- create     — read/write, truncated, exclusive lock
- edit       — read/write, contents preserved, exclusive lock
"""
from __future__ import annotations

import io
import os
from types import TracebackType
from typing import Union

from lockedfile import _platform
from lockedfile._platform import LockMode
from lockedfile.errors import FileAlreadyClosedError
from lockedfile.leak import LeakGuard

StrPath = Union[str, "os.PathLike[str]"]

READ_ONLY = os.O_RDONLY
WRITE_CREATE_TRUNCATE = os.O_RDWR | os.O_CREAT | os.O_TRUNC
WRITE_CREATE_PRESERVE = os.O_RDWR | os.O_CREAT

_DEFAULT_PERM = 0o666

# Only the open functions below may construct a LockedFile.
_OPEN_TOKEN = object()


def _io_mode(flags: int) -> str:
    if flags & os.O_RDWR:
        return "r+"
    if flags & os.O_WRONLY:
        return "a" if flags & os.O_APPEND else "w"
    return "r"


class LockedFile:
    """An open file holding an advisory lock.

    Obtain instances from :func:`open_file`, :func:`open_read`,
    :func:`create` or :func:`edit`; the constructor is not public.

    Supports the context-manager protocol: leaving the block closes the
    handle unless the block already did.
    """

    def __init__(self, token: object, name: str, fd: int, flags: int) -> None:
        if token is not _OPEN_TOKEN:
            raise TypeError(
                "LockedFile cannot be created directly; use lockedfile.open_file()"
            )
        self._name = name
        self._fd = fd
        self._mode = _platform.lock_mode_for(flags)
        self._closed = False
        self._file = io.FileIO(fd, _io_mode(flags), closefd=False)
        self._guard = LeakGuard(self, name)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        """The path the handle was opened with."""
        return self._name

    @property
    def mode(self) -> LockMode:
        """The lock held by this handle, fixed at open."""
        return self._mode

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Unlock and close the underlying file.

        May be called more than once; every call after the first raises
        :class:`~lockedfile.errors.FileAlreadyClosedError`.  The first call
        disarms the leak guard even when releasing the lock fails.

        Raises
        ------
        FileAlreadyClosedError
            If the handle was already closed.
        OSError
            If unlocking or closing the descriptor failed.
        """
        if self._closed:
            raise FileAlreadyClosedError(self._name)
        self._closed = True
        try:
            self._file.close()
            _platform.release(self._fd)
        finally:
            self._guard.disarm()

    # ------------------------------------------------------------------
    # I/O
    # ------------------------------------------------------------------

    def read(self, size: int = -1) -> bytes:
        """Read up to *size* bytes; everything remaining if *size* < 0."""
        if size is None or size < 0:
            return self._file.readall()
        data = self._file.read(size)
        return b"" if data is None else data

    def readall(self) -> bytes:
        return self._file.readall()

    def readinto(self, buffer: bytearray | memoryview) -> int:
        return self._file.readinto(buffer) or 0

    def write(self, data: bytes | bytearray | memoryview) -> int:
        """Write all of *data*, returning its length."""
        view = memoryview(data).cast("B")
        total = len(view)
        written = 0
        while written < total:
            written += self._file.write(view[written:]) or 0
        return total

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self._file.seek(offset, whence)

    def tell(self) -> int:
        return self._file.tell()

    def truncate(self, size: int | None = None) -> int:
        return self._file.truncate(size)

    def stat(self) -> os.stat_result:
        return os.fstat(self._file.fileno())

    def fileno(self) -> int:
        return self._file.fileno()

    def readable(self) -> bool:
        return self._file.readable()

    def writable(self) -> bool:
        return self._file.writable()

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> LockedFile:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if not self._closed:
            self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else self._mode.value
        return f"LockedFile(name={self._name!r}, {state})"


def open_file(path: StrPath, flags: int, perm: int = _DEFAULT_PERM) -> LockedFile:
    """Open *path* like :func:`os.open`, returning a locked handle.

    If *flags* include ``os.O_WRONLY`` or ``os.O_RDWR`` the file is
    write-locked; otherwise it is read-locked.  Blocks until the lock is
    available.

    Parameters
    ----------
    path:
        File to open.
    flags:
        ``os.O_*`` flags.
    perm:
        Permission bits (before umask) if the file is created.

    Raises
    ------
    OSError
        Whatever opening or locking raised, unchanged.
    """
    name = os.fspath(path)
    fd = _platform.acquire(name, flags, perm)
    try:
        return LockedFile(_OPEN_TOKEN, name, fd, flags)
    except BaseException:
        _platform.release(fd)
        raise


def open_read(path: StrPath) -> LockedFile:
    """Open *path* read-only with a shared lock."""
    return open_file(path, READ_ONLY, 0)


def create(path: StrPath) -> LockedFile:
    """Create or truncate *path* (mode 0o666 before umask), write-locked."""
    return open_file(path, WRITE_CREATE_TRUNCATE, _DEFAULT_PERM)


def edit(path: StrPath) -> LockedFile:
    """Open *path* read/write with an exclusive lock, creating it if needed.

    Existing contents are not truncated, so a read-modify-write cycle has
    no window in which the data is missing.
    """
    return open_file(path, WRITE_CREATE_PRESERVE, _DEFAULT_PERM)
