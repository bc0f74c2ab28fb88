"""Audio backend type definitions.

Kept apart from the concrete backends so the playback controller can depend
on the contract without importing sounddevice or numpy.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Protocol


class BackendType(Enum):
    SOUNDDEVICE = "sounddevice"
    MOCK = "mock"


class StopReason(Enum):
    """Why a track stopped.

    ``NATURAL`` is the end of the stream, ``MANUAL`` a stop on request and
    ``ERROR`` a decode or output failure in the middle of playback.
    """

    NATURAL = "natural"
    MANUAL = "manual"
    ERROR = "error"


FinishedCallback = Callable[[str, StopReason], None]


class PlaybackBackend(Protocol):
    backend: BackendType

    def play(self, path: str) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def stop(self) -> Optional[StopReason]: ...

    def set_volume(self, volume: float) -> None: ...

    @property
    def volume(self) -> float: ...

    @property
    def position(self) -> float: ...

    @property
    def duration(self) -> float: ...

    @property
    def is_playing(self) -> bool: ...

    @property
    def is_paused(self) -> bool: ...

    def set_finished_callback(self, callback: Optional[FinishedCallback]) -> None: ...

    def close(self) -> None: ...


def clamp_volume(volume: float) -> float:
    return max(0.0, min(1.0, float(volume)))
