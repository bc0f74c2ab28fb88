"""Helpers for environment flags shared across the app."""

from __future__ import annotations

import os
from pathlib import Path


def _is_truthy(value: str | None) -> bool:
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}


def is_mock_audio_forced() -> bool:
    """Return True when playback should use the mock backend (tests, headless runs)."""

    return _is_truthy(os.environ.get("CONSOLEPLAYER_FORCE_MOCK_AUDIO"))


def resolve_config_path(default_path: Path) -> Path:
    """Pick config path based on environment overrides."""

    env_path = os.environ.get("CONSOLEPLAYER_CONFIG_PATH")
    if env_path:
        return Path(env_path)
    env_dir = os.environ.get("CONSOLEPLAYER_CONFIG_DIR")
    if env_dir:
        return Path(env_dir) / "settings.yaml"
    return default_path
