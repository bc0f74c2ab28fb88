from threading import Thread

import pytest

from consoleplayer.audio.types import StopReason
from consoleplayer.playback.events import CommandQueue, TrackFinished


def test_submit_resolves_future_on_run_pending():
    commands = CommandQueue()

    future = commands.submit(lambda: 21 * 2)

    assert not future.done()
    assert commands.pending() == 1
    assert commands.run_pending() == 1
    assert future.result() == 42


def test_submit_propagates_errors_through_future():
    commands = CommandQueue()

    def boom():
        raise ValueError("bad")

    future = commands.submit(boom)
    commands.run_pending()

    with pytest.raises(ValueError):
        future.result()


def test_posted_failures_are_logged(caplog):
    commands = CommandQueue()
    ran = []

    def boom():
        raise RuntimeError("posted failure")

    commands.post(boom)
    commands.post(lambda: ran.append(True))

    assert commands.run_pending() == 2
    assert ran == [True]
    assert "Queued command failed" in caplog.text


def test_items_run_in_submission_order_on_calling_thread():
    commands = CommandQueue()
    order = []

    def producer(start: int) -> None:
        for value in range(start, start + 5):
            commands.post(lambda value=value: order.append(value))

    worker = Thread(target=producer, args=(0,))
    worker.start()
    worker.join()
    producer(5)

    commands.run_pending()

    assert order == list(range(10))


def test_run_pending_waits_for_first_item():
    commands = CommandQueue()

    assert commands.run_pending(timeout=0.05) == 0


def test_cancelled_future_is_skipped():
    commands = CommandQueue()
    ran = []
    future = commands.submit(lambda: ran.append(True))
    future.cancel()

    commands.run_pending()

    assert ran == []


def test_track_finished_natural_flag():
    assert TrackFinished(1, "a.mp3", StopReason.NATURAL).natural
    assert not TrackFinished(1, "a.mp3", StopReason.MANUAL).natural
