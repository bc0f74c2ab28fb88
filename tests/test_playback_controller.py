import time
from pathlib import Path

import pytest

from consoleplayer.audio.types import BackendType, StopReason
from consoleplayer.core.config import SettingsManager
from consoleplayer.core.errors import DirectoryScanError, PlaybackError
from consoleplayer.core.playlist import Playlist, Track
from consoleplayer.core.subtitles import SubtitleSpan, SubtitleTrack
from consoleplayer.playback.controller import MusicPlayer, PlayerState


class DummyBackend:
    backend = BackendType.MOCK

    def __init__(self, failing_paths=()) -> None:
        self.failing_paths = set(failing_paths)
        self.play_calls: list[str] = []
        self.current: str | None = None
        self.paused = False
        self.position = 0.0
        self.duration = 0.0
        self.volume = 1.0
        self.callback = None
        self.closed = False

    @property
    def is_playing(self) -> bool:
        return self.current is not None and not self.paused

    @property
    def is_paused(self) -> bool:
        return self.current is not None and self.paused

    def play(self, path: str) -> None:
        if path in self.failing_paths:
            raise PlaybackError(f"cannot open {path}")
        self.play_calls.append(path)
        self.current = path
        self.paused = False

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def stop(self):
        path, self.current = self.current, None
        self.paused = False
        if path is None:
            return None
        if self.callback:
            self.callback(path, StopReason.MANUAL)
        return StopReason.MANUAL

    def fail(self) -> None:
        path, self.current = self.current, None
        self.callback(path, StopReason.ERROR)

    def finish(self) -> None:
        path, self.current = self.current, None
        self.callback(path, StopReason.NATURAL)

    def set_volume(self, volume: float) -> None:
        self.volume = volume

    def set_finished_callback(self, callback) -> None:
        self.callback = callback

    def close(self) -> None:
        self.closed = True


class DummyScanner:
    def __init__(self, tracks=None, error=None) -> None:
        self.tracks = tracks or []
        self.error = error
        self.scanned = []

    def scan(self, directory):
        self.scanned.append(directory)
        if self.error is not None:
            raise self.error
        return list(self.tracks)


def _tracks(count: int) -> list[Track]:
    return [Track.from_path(Path(f"/music/{index}.mp3")) for index in range(count)]


def _player(count: int = 3, **kwargs):
    backend = kwargs.pop("backend", None) or DummyBackend()
    playlist = Playlist()
    playlist.load_files(_tracks(count))
    player = MusicPlayer(backend, kwargs.pop("scanner", None) or DummyScanner(), playlist, **kwargs)
    return player, backend


def _wait_until(predicate, timeout: float = 1.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _path(index: int) -> str:
    return str(Path(f"/music/{index}.mp3"))


def test_requires_backend_and_scanner():
    with pytest.raises(ValueError):
        MusicPlayer(None, DummyScanner())
    with pytest.raises(ValueError):
        MusicPlayer(DummyBackend(), None)


def test_next_and_previous_start_playback():
    player, backend = _player()

    assert player.next_track() is True
    assert player.next_track() is True
    assert player.previous_track() is True

    assert backend.play_calls == [_path(0), _path(1), _path(0)]
    assert player.state is PlayerState.PLAYING
    assert player.current_track.name == "0.mp3"
    player.close()


def test_navigation_failure_leaves_playback_untouched():
    player, backend = _player(1)
    player.next_track()

    assert player.next_track() is False
    assert player.previous_track() is False
    assert player.play_at_index(5) is False

    assert backend.play_calls == [_path(0)]
    assert player.state is PlayerState.PLAYING
    player.close()


def test_natural_finish_advances_to_next_track():
    player, backend = _player()
    player.next_track()

    backend.finish()
    player.run_pending()

    assert backend.play_calls == [_path(0), _path(1)]
    assert player.playlist.current_index == 1
    player.close()


def test_manual_stop_does_not_advance():
    player, backend = _player()
    player.next_track()

    player.stop()
    player.run_pending()

    assert backend.play_calls == [_path(0)]
    assert player.state is PlayerState.IDLE
    assert player.playlist.current_index == 0
    player.close()


def test_switching_tracks_does_not_skip_ahead():
    player, backend = _player(5)
    player.next_track()

    player.next_track()
    player.play_at_index(3)
    player.run_pending()

    assert backend.play_calls == [_path(0), _path(1), _path(3)]
    assert player.playlist.current_index == 3
    player.close()


def test_stale_finish_from_previous_track_is_ignored():
    player, backend = _player()
    player.next_track()
    old_callback = backend.callback
    player.next_track()

    old_callback(_path(0), StopReason.NATURAL)
    player.run_pending()

    assert backend.play_calls == [_path(0), _path(1)]
    assert player.playlist.current_index == 1
    player.close()


def test_loop_replays_current_track_on_natural_end():
    player, backend = _player()
    player.next_track()

    assert player.loop_current_track() is True
    backend.finish()
    player.run_pending()
    backend.finish()
    player.run_pending()

    assert backend.play_calls == [_path(0)] * 3
    assert player.playlist.current_index == 0
    assert player.is_looping
    assert player.session.generation == 3
    player.close()


def test_loop_flag_survives_track_changes():
    player, _backend = _player()
    player.loop_current_track()

    player.next_track()
    player.next_track()

    assert player.is_looping
    assert player.loop_current_track() is False
    player.close()


def test_playlist_exhaustion_goes_idle_on_last_track():
    player, backend = _player(2)
    player.next_track()
    player.next_track()

    backend.finish()
    player.run_pending()

    assert player.state is PlayerState.IDLE
    assert player.playlist.current_index == 1
    assert backend.play_calls == [_path(0), _path(1)]
    player.close()


def test_play_failure_sets_idle_and_propagates():
    backend = DummyBackend(failing_paths={_path(0)})
    player, _ = _player(backend=backend)

    with pytest.raises(PlaybackError):
        player.next_track()

    assert player.state is PlayerState.IDLE
    player.close()


def test_toggle_play_pause_cycles_states():
    player, backend = _player()
    player.toggle_play_pause()
    assert backend.play_calls == []

    player.next_track()
    player.toggle_play_pause()
    assert player.state is PlayerState.PAUSED
    assert backend.is_paused

    player.toggle_play_pause()
    assert player.state is PlayerState.PLAYING
    assert backend.play_calls == [_path(0)]

    player.stop()
    player.toggle_play_pause()
    assert player.state is PlayerState.PLAYING
    assert backend.play_calls == [_path(0), _path(0)]
    player.close()


def test_shuffle_playlist_toggles_flag():
    player, _backend = _player(4)
    player.next_track()

    assert player.shuffle_playlist() is True
    assert player.is_shuffling
    assert sorted(player.playlist.future) == [1, 2, 3]
    assert player.shuffle_playlist() is False
    assert player.playlist.future == (1, 2, 3)
    player.close()


def test_volume_is_clamped_and_stepped():
    player, backend = _player()

    assert player.set_volume(1.5) == 1.0
    assert player.decrease_volume() == pytest.approx(0.9)
    assert player.decrease_volume(2.0) == 0.0
    assert player.increase_volume(0.25) == pytest.approx(0.25)
    assert backend.volume == pytest.approx(0.25)
    player.close()


def test_settings_seed_volume_and_loop(tmp_path, monkeypatch):
    monkeypatch.delenv("CONSOLEPLAYER_CONFIG_PATH", raising=False)
    monkeypatch.delenv("CONSOLEPLAYER_CONFIG_DIR", raising=False)
    settings = SettingsManager(config_path=tmp_path / "settings.yaml")
    settings.set_volume(0.3)
    settings.set_loop_enabled(True)

    player, backend = _player(settings=settings)

    assert backend.volume == pytest.approx(0.3)
    assert player.is_looping
    player.close()


def test_load_directory_replaces_playlist():
    scanner = DummyScanner(tracks=_tracks(4))
    player, backend = _player(2, scanner=scanner)
    player.next_track()

    count = player.wait_for(player.load_directory("/music"))

    assert count == 4
    assert scanner.scanned == ["/music"]
    assert len(player.current_playlist) == 4
    assert player.playlist.current_index == -1
    assert player.state is PlayerState.IDLE
    assert backend.current is None
    player.close()


def test_failed_load_keeps_previous_playlist():
    scanner = DummyScanner(error=FileNotFoundError("gone"))
    player, _backend = _player(2, scanner=scanner)
    player.next_track()
    before = player.current_playlist

    future = player.load_directory("/missing")
    with pytest.raises(DirectoryScanError) as excinfo:
        player.wait_for(future)

    assert excinfo.value.directory == "/missing"
    assert player.current_playlist == before
    assert player.playlist.current_index == 0
    assert player.state is PlayerState.PLAYING
    player.close()


@pytest.mark.parametrize("directory", [None, "", "  "])
def test_load_directory_rejects_blank_path(directory):
    player, _backend = _player()

    with pytest.raises(ValueError):
        player.load_directory(directory)
    player.close()


def test_subtitles_follow_playback_position():
    track = Track.from_path("/music/sub.mp3")
    track.attach_subtitles(SubtitleTrack(spans=[SubtitleSpan(1.0, 3.0, "Hello")]))
    backend = DummyBackend()
    playlist = Playlist()
    playlist.load_files([track])
    shown = []
    player = MusicPlayer(backend, DummyScanner(), playlist, subtitle_listener=shown.append, poll_interval=0.01)

    player.next_track()
    backend.position = 2.0
    deadline = time.monotonic() + 1.0
    while player.current_subtitle_text is None and time.monotonic() < deadline:
        time.sleep(0.01)

    assert player.current_subtitle_text == "Hello"
    player.stop()
    assert player.current_subtitle is None
    assert shown == ["Hello", None]
    player.close()


def test_close_is_idempotent_and_closes_backend():
    player, backend = _player()
    player.next_track()

    with player:
        pass
    player.close()

    assert backend.closed
    assert backend.callback is None
    assert player.state is PlayerState.IDLE


def test_stop_discards_finish_already_queued():
    player, backend = _player()
    player.next_track()
    backend.finish()

    player.stop()
    player.run_pending()

    assert player.state is PlayerState.IDLE
    assert backend.play_calls == [_path(0)]
    assert player.playlist.current_index == 0
    player.close()


def test_reload_discards_finish_queued_for_previous_playlist():
    scanner = DummyScanner(tracks=_tracks(2))
    player, backend = _player(3, scanner=scanner)
    player.next_track()

    future = player.load_directory("/other")
    # scan result waits on the command queue; the old track ends after it
    assert _wait_until(lambda: player._commands.pending() == 1)
    backend.finish()

    assert player.wait_for(future) == 2
    player.run_pending()

    assert player.playlist.current_index == -1
    assert player.state is PlayerState.IDLE
    assert backend.play_calls == [_path(0)]
    player.close()


def test_backend_error_goes_idle_without_advancing():
    player, backend = _player()
    player.next_track()

    backend.fail()
    player.run_pending()

    assert player.state is PlayerState.IDLE
    assert player.playlist.current_index == 0
    assert backend.play_calls == [_path(0)]
    player.close()


def test_track_without_subtitles_stops_sync_and_clears_caption():
    captioned = Track.from_path("/music/sub.mp3")
    captioned.attach_subtitles(SubtitleTrack(spans=[SubtitleSpan(1.0, 3.0, "Hello")]))
    plain = Track.from_path("/music/plain.mp3")
    backend = DummyBackend()
    playlist = Playlist()
    playlist.load_files([captioned, plain])
    shown = []
    player = MusicPlayer(backend, DummyScanner(), playlist, subtitle_listener=shown.append, poll_interval=0.01)

    player.next_track()
    backend.position = 2.0
    assert _wait_until(lambda: player.current_subtitle_text == "Hello")

    assert player.next_track() is True

    assert player.current_track is plain
    assert player.current_subtitle is None
    assert player._sync.is_running is False
    assert shown == ["Hello", None]
    player.close()


def test_posted_command_failures_are_logged(caplog):
    player, _backend = _player()

    def broken():
        raise RuntimeError("command blew up")

    player.post(broken)
    assert player.run_pending() == 1

    assert "command blew up" in caplog.text
    player.close()
