"""Application configuration management package.

The public API is available as `consoleplayer.core.config` while the
implementation is split into focused modules.
"""

from __future__ import annotations

from .defaults import DEFAULT_COMMANDS, DEFAULT_CONFIG
from .settings import SettingsManager

__all__ = [
    "DEFAULT_COMMANDS",
    "DEFAULT_CONFIG",
    "SettingsManager",
]
