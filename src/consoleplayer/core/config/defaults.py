"""Default configuration values."""

from __future__ import annotations

from typing import Any, Dict, List

from consoleplayer.core.media_metadata import DEFAULT_AUDIO_EXTENSIONS

DEFAULT_COMMANDS: Dict[str, List[str]] = {
    "toggle_play": ["p", "play", "pause"],
    "next": ["n", "next", ">"],
    "previous": ["b", "prev", "previous", "<"],
    "stop": ["x", "stop"],
    "loop": ["l", "loop", "."],
    "shuffle": ["s", "shuffle"],
    "volume_up": ["+", "up"],
    "volume_down": ["-", "down"],
    "volume": ["v", "volume"],
    "goto": ["g", "goto"],
    "load": ["o", "load"],
    "list": ["ls", "list"],
    "status": ["i", "status"],
    "help": ["h", "help", "?"],
    "quit": ["q", "quit", "exit"],
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "library": {
        "extensions": list(DEFAULT_AUDIO_EXTENSIONS),
        "subtitle_extensions": [".srt"],
        "recursive": False,
        "startup_directory": "",
    },
    "playback": {
        "volume": 1.0,
        "volume_step": 0.1,
        "loop": False,
        "shuffle": False,
    },
    "subtitles": {
        "enabled": True,
        "poll_interval_seconds": 0.1,
    },
    "audio": {
        "backend": "sounddevice",
        "device": None,
        "mock_track_seconds": 1.0,
    },
    "commands": DEFAULT_COMMANDS,
    "diagnostics": {
        "log_level": "WARNING",
        "log_to_file": True,
        "log_dir": "",
    },
}
