"""Playback controller tying the playlist, the audio backend and subtitle sync together."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum
from functools import partial
from pathlib import Path
from threading import Lock
from typing import Any, Callable, List, Optional, Tuple

from consoleplayer.audio.types import PlaybackBackend, StopReason, clamp_volume
from consoleplayer.core.config import SettingsManager
from consoleplayer.core.errors import DirectoryScanError, PlaylistBuildError
from consoleplayer.core.playlist import Playlist, Track
from consoleplayer.core.scanner import AudioFileScanner
from consoleplayer.core.subtitles import SubtitleSpan
from consoleplayer.playback.events import CommandQueue, TrackFinished
from consoleplayer.playback.subtitle_sync import DEFAULT_POLL_INTERVAL, SubtitleSyncLoop


logger = logging.getLogger(__name__)

DEFAULT_VOLUME_STEP = 0.1


class PlayerState(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class PlaybackSession:
    """State of the current play; rebuilt on every start, the loop flag carries over."""

    track: Optional[Track] = None
    generation: int = 0
    is_looping: bool = False


class MusicPlayer:
    """Drives playback of the playlist.

    Commands are meant to be called from one command thread. Backend
    notifications and finished directory scans are queued and applied on
    that thread by :meth:`run_pending` (or :meth:`serve_forever`).
    """

    def __init__(
        self,
        backend: PlaybackBackend,
        scanner: AudioFileScanner,
        playlist: Optional[Playlist] = None,
        *,
        settings: Optional[SettingsManager] = None,
        subtitle_listener: Optional[Callable[[Optional[str]], None]] = None,
        poll_interval: Optional[float] = None,
    ) -> None:
        if backend is None:
            raise ValueError("backend is required")
        if scanner is None:
            raise ValueError("scanner is required")
        self._backend = backend
        self._scanner = scanner
        self._playlist = playlist if playlist is not None else Playlist()
        self._settings = settings
        self._subtitle_listener = subtitle_listener

        if poll_interval is None:
            poll_interval = settings.get_subtitle_poll_interval() if settings else DEFAULT_POLL_INTERVAL
        self._volume_step = settings.get_volume_step() if settings else DEFAULT_VOLUME_STEP
        self._subtitles_enabled = settings.get_subtitles_enabled() if settings else True
        self._shuffle_on_load = settings.get_shuffle_enabled() if settings else False

        self._commands = CommandQueue()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="consoleplayer-scan")
        self._subtitle_lock = Lock()
        self._subtitle: Optional[SubtitleSpan] = None
        self._sync = SubtitleSyncLoop(self._read_position, self._publish_subtitle, interval=poll_interval)
        self._state = PlayerState.IDLE
        self._generation = 0
        self._session = PlaybackSession(is_looping=settings.get_loop_enabled() if settings else False)
        self._serving = False
        self._closed = False

        if settings is not None:
            self._backend.set_volume(settings.get_volume())
        self._backend.set_finished_callback(partial(self._on_backend_finished, self._generation))

    # --- observables ---
    @property
    def playlist(self) -> Playlist:
        return self._playlist

    @property
    def current_playlist(self) -> Tuple[Track, ...]:
        return self._playlist.files

    @property
    def current_track(self) -> Optional[Track]:
        return self._playlist.current_file

    @property
    def position(self) -> float:
        return self._backend.position

    @property
    def duration(self) -> float:
        return self._backend.duration

    @property
    def is_playing(self) -> bool:
        return self._backend.is_playing

    @property
    def is_looping(self) -> bool:
        return self._session.is_looping

    @property
    def is_shuffling(self) -> bool:
        return self._playlist.is_shuffling

    @property
    def volume(self) -> float:
        return self._backend.volume

    @property
    def state(self) -> PlayerState:
        return self._state

    @property
    def session(self) -> PlaybackSession:
        return self._session

    @property
    def current_subtitle(self) -> Optional[SubtitleSpan]:
        with self._subtitle_lock:
            return self._subtitle

    @property
    def current_subtitle_text(self) -> Optional[str]:
        span = self.current_subtitle
        return span.text if span is not None else None

    # --- commands ---
    def load_directory(self, directory: str | Path) -> "Future[int]":
        """Scan ``directory`` in the background and swap the playlist on the command thread.

        The returned future resolves with the number of loaded tracks or fails
        with :class:`DirectoryScanError` / :class:`PlaylistBuildError`; in both
        failure cases the previous playlist stays untouched.
        """
        if directory is None or not str(directory).strip():
            raise ValueError("Directory path cannot be empty.")
        result: "Future[int]" = Future()
        result.set_running_or_notify_cancel()
        scan_future = self._executor.submit(self._scan_directory, directory)
        scan_future.add_done_callback(
            lambda done: self._commands.post(partial(self._finish_load, directory, done, result))
        )
        return result

    def play_current_track(self) -> None:
        track = self._playlist.current_file
        if track is None:
            return
        self._sync.stop()
        self._set_subtitle(None)
        self._backend.stop()

        self._generation += 1
        generation = self._generation
        self._backend.set_finished_callback(partial(self._on_backend_finished, generation))
        self._session = replace(self._session, track=track, generation=generation)
        try:
            self._backend.play(str(track.path))
        except Exception:
            self._state = PlayerState.IDLE
            logger.error("Could not start %s", track.path)
            raise
        self._state = PlayerState.PLAYING
        logger.info("Now playing [%d] %s", self._playlist.current_index, track.display_title)

        if track.subtitles is not None and self._subtitles_enabled:
            self._sync.start(track.subtitles)

    def toggle_play_pause(self) -> None:
        if self._backend.is_playing:
            self._backend.pause()
            self._state = PlayerState.PAUSED
            return
        if self._playlist.current_file is None:
            return
        if self._backend.is_paused:
            self._backend.resume()
            self._state = PlayerState.PLAYING
        else:
            # nothing loaded in the backend (never started or the playlist ran out)
            self.play_current_track()

    def next_track(self) -> bool:
        if not self._playlist.move_next():
            return False
        self.play_current_track()
        return True

    def previous_track(self) -> bool:
        if not self._playlist.move_previous():
            return False
        self.play_current_track()
        return True

    def play_at_index(self, index: int) -> bool:
        if not self._playlist.move_to_index(index):
            return False
        self.play_current_track()
        return True

    def stop(self) -> None:
        self._sync.stop()
        self._set_subtitle(None)
        self._backend.stop()
        # finish notices already queued for the stopped play are stale from here on
        self._generation += 1
        self._state = PlayerState.IDLE

    def loop_current_track(self) -> bool:
        self._session = replace(self._session, is_looping=not self._session.is_looping)
        logger.info("Loop current track: %s", "on" if self._session.is_looping else "off")
        return self._session.is_looping

    def shuffle_playlist(self) -> bool:
        self._playlist.toggle_shuffle()
        logger.info("Shuffle: %s", "on" if self._playlist.is_shuffling else "off")
        return self._playlist.is_shuffling

    def set_volume(self, volume: float) -> float:
        self._backend.set_volume(clamp_volume(volume))
        return self._backend.volume

    def increase_volume(self, step: Optional[float] = None) -> float:
        return self.set_volume(self._backend.volume + (self._volume_step if step is None else step))

    def decrease_volume(self, step: Optional[float] = None) -> float:
        return self.set_volume(self._backend.volume - (self._volume_step if step is None else step))

    # --- command path ---
    def submit(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Queue a command for the command thread."""
        return self._commands.submit(partial(func, *args, **kwargs))

    def post(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """Queue a command whose outcome nobody waits for; failures are logged."""
        self._commands.post(partial(func, *args, **kwargs))

    def run_pending(self, timeout: float = 0.0) -> int:
        return self._commands.run_pending(timeout)

    def wait_for(self, future: Future, timeout: float = 10.0) -> Any:
        """Process queued work until ``future`` completes, then return its result."""
        deadline = time.monotonic() + timeout
        while not future.done():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError("Timed out waiting for player command")
            self._commands.run_pending(min(0.05, remaining))
        return future.result()

    def serve_forever(self, poll_interval: float = 0.1) -> None:
        self._serving = True
        while self._serving:
            self._commands.run_pending(poll_interval)

    def shutdown(self) -> None:
        self._serving = False
        self._commands.post(lambda: None)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._sync.stop()
        self._set_subtitle(None)
        try:
            self._backend.set_finished_callback(None)
            self._backend.close()
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Failed to close audio backend: %s", exc)
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._state = PlayerState.IDLE
        self.shutdown()

    def __enter__(self) -> "MusicPlayer":
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    # --- internals ---
    def _scan_directory(self, directory: str | Path) -> List[Track]:
        try:
            return self._scanner.scan(directory)
        except Exception as exc:
            raise DirectoryScanError(f"Could not enumerate files in {directory}: {exc}", directory) from exc

    def _finish_load(self, directory: str | Path, scan_future: Future, result: Future) -> None:
        error = scan_future.exception()
        if error is not None:
            logger.error("Failed to load playlist: %s", error)
            result.set_exception(error)
            return
        try:
            count = self._apply_tracks(directory, scan_future.result())
        except PlaylistBuildError as exc:
            logger.error("Failed to load playlist: %s", exc)
            result.set_exception(exc)
            return
        result.set_result(count)

    def _apply_tracks(self, directory: str | Path, tracks: List[Track]) -> int:
        try:
            self.stop()
            self._playlist.load_files(tracks)
            if self._shuffle_on_load:
                self._playlist.toggle_shuffle()
        except Exception as exc:
            raise PlaylistBuildError(f"Could not build playlist from {directory}: {exc}", directory) from exc
        self._session = replace(self._session, track=None)
        logger.info("Loaded %d tracks from %s", len(self._playlist), directory)
        return len(self._playlist)

    def _read_position(self) -> float:
        return self._backend.position

    def _on_backend_finished(self, generation: int, path: str, reason: StopReason) -> None:
        # called from the backend thread
        self._commands.post(partial(self._handle_track_finished, TrackFinished(generation, path, reason)))

    def _handle_track_finished(self, event: TrackFinished) -> None:
        if event.reason is StopReason.MANUAL:
            logger.debug("Ignoring manual stop of %s", event.path)
            return
        if event.generation != self._generation:
            logger.debug("Ignoring stale finish of %s", event.path)
            return
        if event.reason is StopReason.ERROR:
            logger.error("Playback of %s stopped on a backend error", event.path)
            self._go_idle()
            return
        if self._session.is_looping:
            self.play_current_track()
            return
        if not self.next_track():
            self._go_idle()
            logger.info("Reached the end of the playlist")

    def _go_idle(self) -> None:
        self._sync.stop()
        self._set_subtitle(None)
        self._generation += 1
        self._state = PlayerState.IDLE

    def _publish_subtitle(self, span: Optional[SubtitleSpan]) -> None:
        # called from the subtitle sync thread
        self._set_subtitle(span)

    def _set_subtitle(self, span: Optional[SubtitleSpan]) -> None:
        with self._subtitle_lock:
            if span is self._subtitle:
                return
            self._subtitle = span
        if self._subtitle_listener is None:
            return
        try:
            self._subtitle_listener(span.text if span is not None else None)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Subtitle listener failed: %s", exc)
