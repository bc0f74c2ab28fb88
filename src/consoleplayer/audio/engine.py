"""Backend selection: real sounddevice output or the mock player."""

from __future__ import annotations

import logging
from typing import List, Optional

from consoleplayer.audio.mock_backend import MockPlayer
from consoleplayer.audio.types import BackendType, PlaybackBackend
from consoleplayer.core.config import SettingsManager
from consoleplayer.core.env import is_mock_audio_forced

logger = logging.getLogger(__name__)


def list_output_devices() -> List[str]:
    """Human readable names of sounddevice output devices (empty when unavailable)."""
    from consoleplayer.audio.sounddevice_player import sd

    if sd is None:
        return []
    devices: List[str] = []
    try:
        for index, info in enumerate(sd.query_devices()):
            if int(info.get("max_output_channels", 0)) > 0:
                devices.append(f"{index}: {info.get('name', 'Unknown')}")
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Output device enumeration failed: %s", exc)
    return devices


def create_backend(settings: Optional[SettingsManager] = None, *, force_mock: bool = False) -> PlaybackBackend:
    settings = settings or SettingsManager()
    mock_seconds = settings.get_mock_track_seconds()
    requested = BackendType.MOCK if force_mock or is_mock_audio_forced() else BackendType(settings.get_audio_backend())

    backend: PlaybackBackend
    if requested is BackendType.MOCK:
        backend = MockPlayer(track_seconds=mock_seconds)
    else:
        try:
            from consoleplayer.audio.sounddevice_player import SoundDevicePlayer

            backend = SoundDevicePlayer(settings.get_audio_device())
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("sounddevice backend unavailable (%s) - falling back to mock playback", exc)
            backend = MockPlayer(track_seconds=mock_seconds)

    backend.set_volume(settings.get_volume())
    logger.debug("Audio backend: %s", backend.backend.value)
    return backend
