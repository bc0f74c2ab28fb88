"""Periodic sampler that follows playback position through a subtitle track."""

from __future__ import annotations

import logging
from threading import Event, Lock, Thread, current_thread
from typing import Callable, Optional

from consoleplayer.core.subtitles import SubtitleSpan, SubtitleTrack


logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.1


class SubtitleSyncLoop:
    """Samples the playback position and reports when the active span changes.

    ``on_change`` is called only when the resolved span is a different object
    than the previous sample. Once :meth:`stop` returns, ``on_change`` is not
    called again for the stopped run.
    """

    def __init__(
        self,
        position_provider: Callable[[], float],
        on_change: Callable[[Optional[SubtitleSpan]], None],
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._position_provider = position_provider
        self._on_change = on_change
        self._interval = max(0.01, float(interval))
        self._lock = Lock()
        self._thread: Optional[Thread] = None
        self._stop_event: Optional[Event] = None
        self._current: Optional[SubtitleSpan] = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def current_span(self) -> Optional[SubtitleSpan]:
        with self._lock:
            return self._current

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self, subtitles: SubtitleTrack) -> None:
        self.stop()
        stop_event = Event()
        thread = Thread(
            target=self._run,
            args=(subtitles, stop_event),
            name="consoleplayer-subtitles",
            daemon=True,
        )
        with self._lock:
            self._current = None
            self._stop_event = stop_event
            self._thread = thread
        thread.start()
        logger.debug("Subtitle sync started (%d spans, every %.3fs)", len(subtitles), self._interval)

    def stop(self) -> None:
        thread = self._thread
        stop_event = self._stop_event
        if stop_event is None:
            return
        stop_event.set()
        # publishing happens under the lock after a stop check, so nothing can publish past this point
        with self._lock:
            self._current = None
            self._stop_event = None
            self._thread = None
        if thread and thread.is_alive() and thread is not current_thread():
            thread.join(timeout=1.5)
            if thread.is_alive():
                logger.warning("Subtitle sync thread did not exit in time")
        logger.debug("Subtitle sync stopped")

    def _run(self, subtitles: SubtitleTrack, stop_event: Event) -> None:
        while not stop_event.is_set():
            try:
                position = float(self._position_provider())
            except Exception as exc:  # pylint: disable=broad-except
                logger.error("Reading playback position failed: %s", exc)
                position = None
            if position is not None:
                span = subtitles.get_active_span_at(position)
                with self._lock:
                    if stop_event.is_set():
                        break
                    if span is not self._current:
                        self._current = span
                        try:
                            self._on_change(span)
                        except Exception as exc:  # pylint: disable=broad-except
                            logger.error("Subtitle listener failed: %s", exc)
            if stop_event.wait(self._interval):
                break
