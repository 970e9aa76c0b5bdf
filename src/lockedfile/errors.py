"""Exception types raised by lockedfile.

Open, release and I/O failures are surfaced as the ``OSError`` the operating
system produced; only the conditions below have their own types.

Classes
-------
- LockedFileError         — base class for all lockedfile errors
- FileAlreadyClosedError  — ``close()`` called on a handle that is closed
- LockLeakError           — a handle became unreachable while still open
"""
from __future__ import annotations


class LockedFileError(Exception):
    """Base class for errors raised by lockedfile."""


class FileAlreadyClosedError(LockedFileError, ValueError):
    """Raised by a second or later ``close()`` on the same handle.

    Subclasses :class:`ValueError`, the error Python file objects raise for
    I/O on a closed file, so existing ``except ValueError`` handlers match.

    Parameters
    ----------
    path:
        Display name of the handle.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"close {path}: file already closed")


class LockLeakError(LockedFileError, RuntimeError):
    """Describes a locked handle that was never closed."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"lockedfile.LockedFile {path} became unreachable without a call to close"
        )
