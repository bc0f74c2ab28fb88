"""Mock audio backend used by tests and fallback flows."""

from __future__ import annotations

import logging
from threading import Lock, Timer
from typing import Collection, Dict, Optional

from consoleplayer.audio.types import BackendType, FinishedCallback, StopReason, clamp_volume
from consoleplayer.core.errors import PlaybackError


logger = logging.getLogger(__name__)


class MockPlayer:
    """Stand-in player that simulates playback time without real audio."""

    backend = BackendType.MOCK

    def __init__(
        self,
        track_seconds: float = 1.0,
        *,
        tick_seconds: float = 0.1,
        durations: Optional[Dict[str, float]] = None,
        failing_paths: Collection[str] = (),
    ) -> None:
        self._track_seconds = max(0.0, float(track_seconds))
        self._tick_seconds = max(0.001, float(tick_seconds))
        self._durations = dict(durations or {})
        self._failing_paths = set(failing_paths)
        self._lock = Lock()
        self._timer: Optional[Timer] = None
        self._token = 0
        self._current_path: Optional[str] = None
        self._position = 0.0
        self._duration = 0.0
        self._paused = False
        self._volume = 1.0
        self._on_finished: Optional[FinishedCallback] = None
        self.play_calls: list[str] = []

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def position(self) -> float:
        with self._lock:
            return self._position

    @property
    def duration(self) -> float:
        with self._lock:
            return self._duration

    @property
    def is_playing(self) -> bool:
        with self._lock:
            return self._current_path is not None and not self._paused

    @property
    def is_paused(self) -> bool:
        with self._lock:
            return self._current_path is not None and self._paused

    def play(self, path: str) -> None:
        path = str(path)
        if path in self._failing_paths:
            raise PlaybackError(f"Cannot open audio file: {path}")
        self.stop()
        with self._lock:
            self._token += 1
            self._current_path = path
            self._position = 0.0
            self._duration = self._durations.get(path, self._track_seconds)
            self._paused = False
            self.play_calls.append(path)
            self._schedule_locked(self._token)
        logger.info("[MOCK] Playing %s (%.2fs)", path, self._duration)

    def pause(self) -> None:
        with self._lock:
            if self._current_path and not self._paused:
                self._paused = True
                logger.info("[MOCK] Pause %s", self._current_path)

    def resume(self) -> None:
        with self._lock:
            if self._current_path and self._paused:
                self._paused = False
                logger.info("[MOCK] Resume %s", self._current_path)

    def stop(self) -> Optional[StopReason]:
        with self._lock:
            path = self._current_path
            self._token += 1
            if self._timer:
                self._timer.cancel()
                self._timer = None
            self._current_path = None
            self._position = 0.0
            self._duration = 0.0
            self._paused = False
            callback = self._on_finished
        if path is None:
            return None
        logger.info("[MOCK] Stop %s", path)
        self._notify(callback, path, StopReason.MANUAL)
        return StopReason.MANUAL

    def set_volume(self, volume: float) -> None:
        self._volume = clamp_volume(volume)

    def set_finished_callback(self, callback: Optional[FinishedCallback]) -> None:
        with self._lock:
            self._on_finished = callback

    def close(self) -> None:
        self.stop()

    def _schedule_locked(self, token: int) -> None:
        self._timer = Timer(self._tick_seconds, self._tick, args=(token,))
        self._timer.daemon = True
        self._timer.start()

    def _tick(self, token: int) -> None:
        with self._lock:
            if token != self._token or self._current_path is None:
                return
            if not self._paused:
                self._position = min(self._duration, self._position + self._tick_seconds)
            if self._position < self._duration:
                self._schedule_locked(token)
                return
            path = self._current_path
            self._current_path = None
            self._timer = None
            self._paused = False
            callback = self._on_finished
        self._notify(callback, path, StopReason.NATURAL)

    @staticmethod
    def _notify(callback: Optional[FinishedCallback], path: str, reason: StopReason) -> None:
        if not callback:
            return
        try:
            callback(path, reason)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Finished callback failed: %s", exc)
