"""Cross-process mutual exclusion backed by a locked file.

A :class:`Mutex` takes an exclusive lock on a sentinel file.  The sentinel
is created on first use and never removed: deleting it while another
process waits on it would let two holders lock different files.

Example
-------
::

    from lockedfile import Mutex

    with Mutex("/tmp/build.lock"):
        run_build()

"""
from __future__ import annotations

import os
from types import TracebackType
from typing import Callable

from lockedfile.file import StrPath, open_file

_MUTEX_FLAGS = os.O_WRONLY | os.O_CREAT
_MUTEX_PERM = 0o666


class Mutex:
    """A mutual-exclusion lock on the file at *path*.

    Parameters
    ----------
    path:
        Sentinel file path.  Its contents are never read or written.
    """

    def __init__(self, path: StrPath) -> None:
        self._path = os.fspath(path)
        self._unlock: Callable[[], None] | None = None

    @property
    def path(self) -> str:
        return self._path

    def lock(self) -> Callable[[], None]:
        """Block until the lock is acquired and return a function releasing it.

        Raises
        ------
        ValueError
            If the mutex has no path.
        OSError
            If the sentinel file cannot be opened or locked.
        """
        if not self._path:
            raise ValueError("lockedfile.Mutex: missing path")
        f = open_file(self._path, _MUTEX_FLAGS, _MUTEX_PERM)
        return f.close

    def __enter__(self) -> Mutex:
        self._unlock = self.lock()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        unlock, self._unlock = self._unlock, None
        if unlock is not None:
            unlock()

    def __repr__(self) -> str:
        return f"Mutex(path={self._path!r})"
