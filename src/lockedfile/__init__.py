"""lockedfile — files whose contents change atomically under advisory locks.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import lockedfile
>>> lockedfile.__version__
'0.1.0'
"""
from __future__ import annotations

# Handles
from lockedfile._platform import LockMode
from lockedfile.file import (
    READ_ONLY,
    WRITE_CREATE_PRESERVE,
    WRITE_CREATE_TRUNCATE,
    LockedFile,
    create,
    edit,
    open_file,
    open_read,
)

# Whole-file operations
from lockedfile.convenience import read, transform, write
from lockedfile.mutex import Mutex

# Errors
from lockedfile.errors import FileAlreadyClosedError, LockedFileError, LockLeakError

# Leak detection and configuration
from lockedfile.leak import default_leak_handler, set_leak_handler
from lockedfile.settings import LockedFileSettings, configure, get_settings

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Handles
    "LockMode",
    "LockedFile",
    "READ_ONLY",
    "WRITE_CREATE_PRESERVE",
    "WRITE_CREATE_TRUNCATE",
    "create",
    "edit",
    "open_file",
    "open_read",
    # Whole-file operations
    "Mutex",
    "read",
    "transform",
    "write",
    # Errors
    "FileAlreadyClosedError",
    "LockLeakError",
    "LockedFileError",
    # Leak detection and configuration
    "LockedFileSettings",
    "configure",
    "default_leak_handler",
    "get_settings",
    "set_leak_handler",
]
