"""Runtime configuration for lockedfile.

Settings are held in a single process-wide :class:`LockedFileSettings`
instance, loaded from ``LOCKEDFILE_*`` environment variables on first use.

Environment variables
---------------------
- ``LOCKEDFILE_LEAK_POLICY``   — ``abort`` (default) or ``warn``
- ``LOCKEDFILE_DEFAULT_PERM``  — octal permission bits, e.g. ``644``
- ``LOCKEDFILE_POLL_INTERVAL`` — seconds between lock attempts on Windows
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

_ENV_PREFIX = "LOCKEDFILE_"


class LockedFileSettings(BaseModel):
    """Configuration parameters for lockedfile.

    Parameters
    ----------
    leak_policy:
        What happens when a handle is garbage collected while still open.
        ``"abort"`` logs the diagnostic and terminates the process;
        ``"warn"`` emits a :class:`ResourceWarning` instead.
    default_perm:
        Permission bits (before umask) used by :func:`~lockedfile.write`
        and the CLI when none are given.  Default: ``0o666``.
    poll_interval:
        Seconds between non-blocking lock attempts on platforms without a
        blocking lock call (Windows).  Default: 0.05.
    """

    model_config = {"frozen": True}

    leak_policy: Literal["abort", "warn"] = "abort"
    default_perm: int = Field(default=0o666, ge=0, le=0o7777)
    poll_interval: float = Field(default=0.05, gt=0.0)

    @field_validator("default_perm", mode="before")
    @classmethod
    def _parse_octal(cls, value: Any) -> Any:
        if isinstance(value, str):
            return int(value, 8)
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LockedFileSettings:
        """Build settings from ``LOCKEDFILE_*`` variables.

        Parameters
        ----------
        environ:
            Mapping to read instead of :data:`os.environ`.

        Raises
        ------
        pydantic.ValidationError
            If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for field_name in cls.model_fields:
            raw = env.get(_ENV_PREFIX + field_name.upper())
            if raw is not None and raw != "":
                values[field_name] = raw.strip()
        return cls(**values)


_settings: LockedFileSettings | None = None


def get_settings() -> LockedFileSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = LockedFileSettings.from_env()
    return _settings


def configure(**overrides: Any) -> LockedFileSettings:
    """Replace the process-wide settings with *overrides* applied.

    Returns
    -------
    LockedFileSettings
        The new settings.
    """
    global _settings
    base = get_settings().model_dump()
    base.update(overrides)
    _settings = LockedFileSettings(**base)
    return _settings


def reset_settings() -> None:
    """Forget the current settings so the next access reloads the environment."""
    global _settings
    _settings = None
