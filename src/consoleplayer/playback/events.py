"""Single-threaded command path shared by user commands and backend notifications."""

from __future__ import annotations

import logging
import queue
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from consoleplayer.audio.types import StopReason


logger = logging.getLogger(__name__)

_Item = Tuple[Callable[[], Any], Optional[Future]]


@dataclass(frozen=True)
class TrackFinished:
    """Backend notification, stamped with the play generation it belongs to."""

    generation: int
    path: str
    reason: StopReason

    @property
    def natural(self) -> bool:
        return self.reason is StopReason.NATURAL


class CommandQueue:
    """FIFO of callables executed by whichever thread calls :meth:`run_pending`.

    Any thread may enqueue; only the command thread runs items, so state
    touched by the items needs no locking.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[_Item]" = queue.Queue()

    def submit(self, func: Callable[[], Any]) -> Future:
        """Enqueue ``func`` and return a future resolved with its outcome."""
        future: Future = Future()
        self._queue.put((func, future))
        return future

    def post(self, func: Callable[[], Any]) -> None:
        """Enqueue ``func`` without a future; failures are logged."""
        self._queue.put((func, None))

    def pending(self) -> int:
        return self._queue.qsize()

    def run_pending(self, timeout: float = 0.0) -> int:
        """Run queued items, waiting up to ``timeout`` seconds for the first one."""
        processed = 0
        block = timeout > 0
        while True:
            try:
                if block and processed == 0:
                    func, future = self._queue.get(timeout=timeout)
                else:
                    func, future = self._queue.get_nowait()
            except queue.Empty:
                return processed
            processed += 1
            self._execute(func, future)

    @staticmethod
    def _execute(func: Callable[[], Any], future: Optional[Future]) -> None:
        if future is None:
            try:
                func()
            except Exception:  # pylint: disable=broad-except
                logger.exception("Queued command failed")
            return
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = func()
        except Exception as exc:  # pylint: disable=broad-except
            future.set_exception(exc)
        else:
            future.set_result(result)
