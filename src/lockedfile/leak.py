"""Leak detection for locked handles.

Every successfully opened :class:`~lockedfile.file.LockedFile` carries a
:class:`LeakGuard`.  If the handle is garbage collected, or still open when
the interpreter exits, before ``close()`` disarms the guard, the current
leak handler is called with the handle's path.

The default handler follows ``LockedFileSettings.leak_policy``: ``"abort"``
logs the diagnostic at CRITICAL, writes it to stderr and terminates the
process; ``"warn"`` emits a :class:`ResourceWarning`.

Classes
-------
- LeakGuard  — finalizer armed for one handle

Functions
---------
- set_leak_handler  — install a custom handler, returning the previous one
"""
from __future__ import annotations

import logging
import os
import sys
import warnings
import weakref
from typing import Callable

from pydantic import ValidationError

from lockedfile.errors import LockLeakError
from lockedfile.settings import get_settings

logger = logging.getLogger(__name__)

LeakHandler = Callable[[str], None]

_ABORT_EXIT_CODE = 2

_handler: LeakHandler | None = None


def _leak_policy() -> str:
    try:
        return get_settings().leak_policy
    except ValidationError:
        logger.exception("invalid lockedfile settings; using the abort leak policy")
        return "abort"


def default_leak_handler(path: str) -> None:
    """Report a leaked handle according to the configured leak policy.

    Falls back to ``"abort"`` when the settings cannot be loaded.
    """
    error = LockLeakError(path)
    if _leak_policy() == "warn":
        warnings.warn(str(error), ResourceWarning, stacklevel=2)
        return
    logger.critical("%s", error)
    sys.stderr.write(f"fatal: {error}\n")
    sys.stderr.flush()
    os._exit(_ABORT_EXIT_CODE)


def set_leak_handler(handler: LeakHandler | None) -> LeakHandler | None:
    """Install *handler* for leaked handles.

    Parameters
    ----------
    handler:
        Called with the leaked handle's path.  ``None`` restores
        :func:`default_leak_handler`.

    Returns
    -------
    LeakHandler | None
        The previously installed handler (``None`` for the default).
    """
    global _handler
    previous = _handler
    _handler = handler
    return previous


def _report(path: str) -> None:
    handler = _handler or default_leak_handler
    handler(path)


class LeakGuard:
    """Finalizer reporting *owner* if it is collected before :meth:`disarm`.

    The finalizer holds only the path, never the owner itself, so it does
    not keep the handle alive.

    Parameters
    ----------
    owner:
        The object being watched.
    path:
        Name reported in the diagnostic.
    """

    __slots__ = ("_finalizer",)

    def __init__(self, owner: object, path: str) -> None:
        self._finalizer = weakref.finalize(owner, _report, path)

    @property
    def armed(self) -> bool:
        return self._finalizer.alive

    def disarm(self) -> None:
        """Cancel the report.  Safe to call more than once."""
        self._finalizer.detach()
