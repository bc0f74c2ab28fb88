"""Player decoding files with soundfile and writing them to a sounddevice stream."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Event, Lock, Thread, current_thread
from typing import Optional

from consoleplayer.audio.types import BackendType, FinishedCallback, StopReason, clamp_volume
from consoleplayer.core.errors import PlaybackError

logger = logging.getLogger(__name__)

try:
    import sounddevice as sd
except (ImportError, OSError):  # pragma: no cover - no sounddevice or PortAudio missing
    sd = None

try:
    import soundfile as sf
except (ImportError, OSError):  # pragma: no cover - no soundfile or libsndfile missing
    sf = None

try:
    import numpy as np
except ImportError:  # pragma: no cover - numpy is installed with soundfile
    np = None


class SoundDevicePlayer:
    """Plays one file at a time on a background thread."""

    backend = BackendType.SOUNDDEVICE

    def __init__(self, device: int | str | None = None, *, block_frames: int = 4096) -> None:
        if sd is None:
            raise RuntimeError("sounddevice unavailable")
        if sf is None:
            raise RuntimeError("soundfile unavailable")
        self.device = device
        self._block_frames = max(256, int(block_frames))
        self._lock = Lock()
        self._thread: Optional[Thread] = None
        self._stop_event: Optional[Event] = None
        self._pause_event: Optional[Event] = None
        self._token = 0
        self._current_path: Optional[str] = None
        self._frames_played = 0
        self._samplerate = 0
        self._total_frames = 0
        self._volume = 1.0
        self._on_finished: Optional[FinishedCallback] = None

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def position(self) -> float:
        with self._lock:
            if not self._samplerate:
                return 0.0
            return self._frames_played / self._samplerate

    @property
    def duration(self) -> float:
        with self._lock:
            if not self._samplerate:
                return 0.0
            return self._total_frames / self._samplerate

    @property
    def is_playing(self) -> bool:
        with self._lock:
            return self._current_path is not None and not (self._pause_event and self._pause_event.is_set())

    @property
    def is_paused(self) -> bool:
        with self._lock:
            return self._current_path is not None and bool(self._pause_event and self._pause_event.is_set())

    def play(self, path: str) -> None:
        path = str(path)
        self.stop()
        try:
            sound_file = sf.SoundFile(path)
        except Exception as exc:  # pylint: disable=broad-except
            raise PlaybackError(f"Cannot open audio file {Path(path).name}: {exc}") from exc

        with self._lock:
            self._token += 1
            token = self._token
            self._stop_event = Event()
            self._pause_event = Event()
            self._current_path = path
            self._frames_played = 0
            self._samplerate = int(sound_file.samplerate)
            self._total_frames = len(sound_file)
            thread = Thread(
                target=self._run,
                args=(sound_file, path, token, self._stop_event, self._pause_event),
                name="consoleplayer-audio",
                daemon=True,
            )
            self._thread = thread
        logger.info("Playing %s (%d Hz, %d ch)", path, sound_file.samplerate, sound_file.channels)
        thread.start()

    def pause(self) -> None:
        with self._lock:
            if self._pause_event and not self._pause_event.is_set():
                self._pause_event.set()

    def resume(self) -> None:
        with self._lock:
            if self._pause_event and self._pause_event.is_set():
                self._pause_event.clear()

    def stop(self) -> Optional[StopReason]:
        with self._lock:
            path = self._current_path
            thread = self._thread
            if self._stop_event:
                self._stop_event.set()
            self._token += 1
            self._thread = None
            self._stop_event = None
            self._pause_event = None
            self._current_path = None
            self._frames_played = 0
            self._samplerate = 0
            self._total_frames = 0
            callback = self._on_finished
        if thread and thread.is_alive() and thread is not current_thread():
            thread.join(timeout=1.5)
        if path is None:
            return None
        self._notify(callback, path, StopReason.MANUAL)
        return StopReason.MANUAL

    def set_volume(self, volume: float) -> None:
        with self._lock:
            self._volume = clamp_volume(volume)

    def set_finished_callback(self, callback: Optional[FinishedCallback]) -> None:
        with self._lock:
            self._on_finished = callback

    def close(self) -> None:
        self.stop()

    def _run(self, sound_file, path: str, token: int, stop_event: Event, pause_event: Event) -> None:
        reason: Optional[StopReason] = None
        try:
            with sound_file, sd.OutputStream(
                device=self.device,
                samplerate=sound_file.samplerate,
                channels=sound_file.channels,
                dtype="float32",
            ) as stream:
                while not stop_event.is_set():
                    if pause_event.is_set():
                        stop_event.wait(0.05)
                        continue
                    data = sound_file.read(self._block_frames, dtype="float32", always_2d=True)
                    if len(data) == 0:
                        reason = StopReason.NATURAL
                        break
                    with self._lock:
                        volume = self._volume
                    if volume != 1.0:
                        data = data * np.float32(volume)
                    stream.write(data)
                    with self._lock:
                        if token == self._token:
                            self._frames_played += len(data)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Playback error on %s: %s", path, exc)
            reason = StopReason.ERROR

        with self._lock:
            owned = token == self._token
            if owned:
                self._current_path = None
                self._thread = None
                self._stop_event = None
                self._pause_event = None
            callback = self._on_finished
        if owned and reason is not None:
            self._notify(callback, path, reason)

    @staticmethod
    def _notify(callback: Optional[FinishedCallback], path: str, reason: StopReason) -> None:
        if not callback:
            return
        try:
            callback(path, reason)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Finished callback failed: %s", exc)
