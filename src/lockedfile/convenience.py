"""Whole-file operations built on locked handles.

Each function holds its lock only for the duration of the call.

Example
-------
::

    import lockedfile
    lockedfile.write("state.json", b"{}")
    data = lockedfile.read("state.json")

"""
from __future__ import annotations

import contextlib
import os
from typing import BinaryIO, Callable, Union

from lockedfile.file import LockedFile, StrPath, edit, open_file, open_read
from lockedfile.settings import get_settings

Content = Union[bytes, bytearray, memoryview, BinaryIO]

_COPY_BUFSIZE = 64 * 1024
_WRITE_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_TRUNC


def _copy(content: Content, dest: LockedFile) -> None:
    if isinstance(content, (bytes, bytearray, memoryview)):
        dest.write(content)
        return
    while True:
        chunk = content.read(_COPY_BUFSIZE)
        if not chunk:
            return
        dest.write(chunk)


def read(path: StrPath) -> bytes:
    """Open *path* with a read lock and return its contents.

    The handle is closed before returning on every path; an error from
    closing it is discarded.
    """
    f = open_read(path)
    try:
        return f.readall()
    finally:
        with contextlib.suppress(OSError):
            f.close()


def write(path: StrPath, content: Content, perm: int | None = None) -> None:
    """Overwrite *path* with *content* under a write lock.

    Parameters
    ----------
    path:
        File to write.  Created with *perm* if it does not exist.
    content:
        Bytes-like object, or a binary file-like object read to EOF.
    perm:
        Permission bits (before umask) for a new file.  Defaults to
        ``LockedFileSettings.default_perm``.

    Raises
    ------
    Exception
        If copying fails, the copy error, even when closing also failed.
    OSError
        If the copy succeeded but releasing the lock failed.
    """
    if perm is None:
        perm = get_settings().default_perm
    f = open_file(path, _WRITE_FLAGS, perm)
    try:
        _copy(content, f)
    except BaseException:
        with contextlib.suppress(OSError):
            f.close()
        raise
    f.close()


def transform(path: StrPath, fn: Callable[[bytes], bytes]) -> None:
    """Replace the contents of *path* with ``fn(old_contents)``.

    The whole read-modify-write cycle runs under one exclusive lock.  The
    file is created empty if it does not exist.  If *fn* raises, the file is
    left unchanged and the error propagates.  If writing the new contents
    fails, the old contents are restored on a best-effort basis and the
    write error propagates.  An error from *fn* or from writing wins over an
    error from releasing the lock.
    """
    f = edit(path)
    try:
        old = f.readall()
        new = fn(old)
        _rewrite(f, old, new)
    except BaseException:
        with contextlib.suppress(OSError):
            f.close()
        raise
    f.close()


def _rewrite(f: LockedFile, old: bytes, new: bytes) -> None:
    if len(new) > len(old):
        # Grow the file first: if that fails the old contents are intact.
        try:
            f.write(new[len(old):])
        except BaseException:
            with contextlib.suppress(OSError):
                f.truncate(len(old))
            raise
        new = new[: len(old)]
    try:
        if len(new) < len(old):
            f.truncate(len(new))
        f.seek(0)
        f.write(new)
    except BaseException:
        with contextlib.suppress(OSError):
            f.seek(0)
            f.write(old)
            f.truncate(len(old))
        raise
