"""Application configuration management module."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .defaults import DEFAULT_COMMANDS, DEFAULT_CONFIG
from .merge import _deep_merge
from consoleplayer.core.env import resolve_config_path

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_BACKENDS = ("sounddevice", "mock")
_MIN_POLL_INTERVAL = 0.01


def _normalize_extension(value: Any) -> str:
    text = str(value).strip().lower()
    if text and not text.startswith("."):
        text = f".{text}"
    return text


@dataclass
class SettingsManager:
    """YAML configuration merged over the defaults."""

    config_path: Path = Path("config/settings.yaml")

    def __post_init__(self) -> None:
        self.config_path = resolve_config_path(Path(self.config_path))
        self._data: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        if self.config_path.exists():
            with self.config_path.open("r", encoding="utf-8") as file:
                user_config = yaml.safe_load(file) or {}
            if not isinstance(user_config, dict):
                user_config = {}
            self._data = _deep_merge(DEFAULT_CONFIG, user_config)
        else:
            self._data = copy.deepcopy(DEFAULT_CONFIG)

    def save(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with self.config_path.open("w", encoding="utf-8") as file:
            yaml.safe_dump(self._data, file, allow_unicode=False, sort_keys=True)

    def get_raw(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    def _get_float(self, section: str, key: str, *, minimum: float | None = None, maximum: float | None = None) -> float:
        default = DEFAULT_CONFIG[section][key]
        value = self._section(section).get(key, default)
        try:
            number = float(value)
        except (TypeError, ValueError):
            return default
        if minimum is not None:
            number = max(minimum, number)
        if maximum is not None:
            number = min(maximum, number)
        return number

    # --- library ---
    def get_audio_extensions(self) -> List[str]:
        values = self._section("library").get("extensions")
        if not isinstance(values, (list, tuple)) or not values:
            return list(DEFAULT_CONFIG["library"]["extensions"])
        extensions = [_normalize_extension(value) for value in values]
        return [ext for ext in extensions if ext]

    def set_audio_extensions(self, extensions: List[str]) -> None:
        library = self._data.setdefault("library", {})
        library["extensions"] = [ext for ext in (_normalize_extension(value) for value in extensions) if ext]

    def get_subtitle_extensions(self) -> List[str]:
        values = self._section("library").get("subtitle_extensions")
        if not isinstance(values, (list, tuple)) or not values:
            return list(DEFAULT_CONFIG["library"]["subtitle_extensions"])
        return [ext for ext in (_normalize_extension(value) for value in values) if ext]

    def get_recursive_scan(self) -> bool:
        return bool(self._section("library").get("recursive", DEFAULT_CONFIG["library"]["recursive"]))

    def set_recursive_scan(self, enabled: bool) -> None:
        self._data.setdefault("library", {})["recursive"] = bool(enabled)

    def get_startup_directory(self) -> Optional[Path]:
        value = self._section("library").get("startup_directory")
        if not value or not str(value).strip():
            return None
        return Path(str(value)).expanduser()

    def set_startup_directory(self, directory: Optional[Path | str]) -> None:
        self._data.setdefault("library", {})["startup_directory"] = str(directory) if directory else ""

    # --- playback ---
    def get_volume(self) -> float:
        return self._get_float("playback", "volume", minimum=0.0, maximum=1.0)

    def set_volume(self, volume: float) -> None:
        self._data.setdefault("playback", {})["volume"] = max(0.0, min(1.0, float(volume)))

    def get_volume_step(self) -> float:
        step = self._get_float("playback", "volume_step", minimum=0.0, maximum=1.0)
        return step if step > 0.0 else DEFAULT_CONFIG["playback"]["volume_step"]

    def get_loop_enabled(self) -> bool:
        return bool(self._section("playback").get("loop", DEFAULT_CONFIG["playback"]["loop"]))

    def set_loop_enabled(self, enabled: bool) -> None:
        self._data.setdefault("playback", {})["loop"] = bool(enabled)

    def get_shuffle_enabled(self) -> bool:
        return bool(self._section("playback").get("shuffle", DEFAULT_CONFIG["playback"]["shuffle"]))

    def set_shuffle_enabled(self, enabled: bool) -> None:
        self._data.setdefault("playback", {})["shuffle"] = bool(enabled)

    # --- subtitles ---
    def get_subtitles_enabled(self) -> bool:
        return bool(self._section("subtitles").get("enabled", DEFAULT_CONFIG["subtitles"]["enabled"]))

    def set_subtitles_enabled(self, enabled: bool) -> None:
        self._data.setdefault("subtitles", {})["enabled"] = bool(enabled)

    def get_subtitle_poll_interval(self) -> float:
        return self._get_float("subtitles", "poll_interval_seconds", minimum=_MIN_POLL_INTERVAL)

    def set_subtitle_poll_interval(self, seconds: float) -> None:
        self._data.setdefault("subtitles", {})["poll_interval_seconds"] = max(_MIN_POLL_INTERVAL, float(seconds))

    # --- audio ---
    def get_audio_backend(self) -> str:
        value = str(self._section("audio").get("backend", DEFAULT_CONFIG["audio"]["backend"])).strip().lower()
        return value if value in _BACKENDS else DEFAULT_CONFIG["audio"]["backend"]

    def set_audio_backend(self, backend: str) -> None:
        self._data.setdefault("audio", {})["backend"] = str(backend).strip().lower()

    def get_audio_device(self) -> int | str | None:
        value = self._section("audio").get("device")
        if value is None or value == "":
            return None
        if isinstance(value, int):
            return value
        text = str(value).strip()
        return int(text) if text.isdigit() else text

    def get_mock_track_seconds(self) -> float:
        return self._get_float("audio", "mock_track_seconds", minimum=0.1)

    # --- commands ---
    def get_command_aliases(self) -> Dict[str, List[str]]:
        result = {action: list(words) for action, words in DEFAULT_COMMANDS.items()}
        user_values = self._section("commands")
        for action, words in user_values.items():
            if isinstance(words, str):
                words = [words]
            if not isinstance(words, (list, tuple)):
                continue
            normalized = [str(word).strip().lower() for word in words if str(word).strip()]
            if normalized:
                result[str(action)] = normalized
        return result

    # --- diagnostics ---
    def get_diagnostics_log_level(self) -> str:
        level = str(self._section("diagnostics").get("log_level", DEFAULT_CONFIG["diagnostics"]["log_level"])).upper()
        return level if level in _LOG_LEVELS else DEFAULT_CONFIG["diagnostics"]["log_level"]

    def set_diagnostics_log_level(self, level: str) -> None:
        self._data.setdefault("diagnostics", {})["log_level"] = str(level).upper()

    def get_log_to_file(self) -> bool:
        return bool(self._section("diagnostics").get("log_to_file", DEFAULT_CONFIG["diagnostics"]["log_to_file"]))

    def set_log_to_file(self, enabled: bool) -> None:
        self._data.setdefault("diagnostics", {})["log_to_file"] = bool(enabled)

    def get_log_directory(self) -> Optional[Path]:
        value = self._section("diagnostics").get("log_dir")
        if not value or not str(value).strip():
            return None
        return Path(str(value)).expanduser()

    def set_log_directory(self, directory: Optional[Path | str]) -> None:
        self._data.setdefault("diagnostics", {})["log_dir"] = str(directory) if directory else ""
