"""Text commands for the console front end."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from consoleplayer.core.config import DEFAULT_COMMANDS
from consoleplayer.core.errors import PlayerError
from consoleplayer.playback.controller import MusicPlayer, PlayerState


logger = logging.getLogger(__name__)

_HELP_LABELS = {
    "toggle_play": "play / pause",
    "next": "next track",
    "previous": "previous track",
    "stop": "stop playback",
    "loop": "toggle looping of the current track",
    "shuffle": "toggle shuffle of the remaining tracks",
    "volume_up": "volume up",
    "volume_down": "volume down",
    "volume": "set volume in percent, e.g. 'volume 60'",
    "goto": "play track N from the list",
    "load": "load a music directory",
    "list": "show the playlist",
    "status": "show what is playing",
    "help": "show this help",
    "quit": "exit",
}


@dataclass
class CommandResult:
    text: str = ""
    quit: bool = False


def format_time(seconds: float) -> str:
    minutes, secs = divmod(int(max(0.0, seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


class CommandDispatcher:
    """Maps typed words onto :class:`MusicPlayer` commands.

    ``dispatch`` must run on the player's command thread.
    """

    def __init__(
        self,
        player: MusicPlayer,
        aliases: Optional[Dict[str, List[str]]] = None,
        *,
        emit: Callable[[str], None] = print,
        autoplay: bool = True,
    ) -> None:
        self._player = player
        self._emit = emit
        self._autoplay = autoplay
        self._aliases = aliases or DEFAULT_COMMANDS
        self._lookup: Dict[str, str] = {}
        for action, words in self._aliases.items():
            for word in words:
                self._lookup.setdefault(word.lower(), action)
        self._handlers: Dict[str, Callable[[str], CommandResult]] = {
            "toggle_play": self._toggle_play,
            "next": self._next,
            "previous": self._previous,
            "stop": self._stop,
            "loop": self._loop,
            "shuffle": self._shuffle,
            "volume_up": lambda _arg: self._volume_text(self._player.increase_volume()),
            "volume_down": lambda _arg: self._volume_text(self._player.decrease_volume()),
            "volume": self._volume,
            "goto": self._goto,
            "load": self.load,
            "list": lambda _arg: CommandResult(self.playlist_text()),
            "status": lambda _arg: CommandResult(self.status_text()),
            "help": lambda _arg: CommandResult(self.help_text()),
            "quit": lambda _arg: CommandResult("Bye.", quit=True),
        }

    def resolve(self, word: str) -> Optional[str]:
        return self._lookup.get(word.strip().lower())

    def dispatch(self, line: str) -> CommandResult:
        word, _, argument = line.strip().partition(" ")
        if not word:
            return CommandResult()
        action = self.resolve(word)
        handler = self._handlers.get(action or "")
        if handler is None:
            return CommandResult(f"Unknown command: {word} (type 'help')")
        try:
            return handler(argument.strip())
        except PlayerError as exc:
            logger.error("Command %s failed: %s", action, exc)
            return CommandResult(f"Error: {exc}")

    # --- rendering ---
    def status_text(self) -> str:
        player = self._player
        track = player.current_track
        if track is None:
            return "Nothing selected."
        state = {
            PlayerState.PLAYING: "Playing",
            PlayerState.PAUSED: "Paused",
            PlayerState.IDLE: "Stopped",
        }[player.state]
        flags = []
        if player.is_looping:
            flags.append("loop")
        if player.is_shuffling:
            flags.append("shuffle")
        parts = [
            state,
            track.display_title,
            f"{format_time(player.position)} / {format_time(player.duration or track.duration_seconds)}",
            f"vol {round(player.volume * 100)}%",
        ]
        if flags:
            parts.append(", ".join(flags))
        return " | ".join(parts)

    def playlist_text(self) -> str:
        tracks = self._player.current_playlist
        if not tracks:
            return "No files loaded."
        current = self._player.playlist.current_index
        lines = []
        for index, track in enumerate(tracks):
            marker = ">" if index == current else " "
            subtitle_mark = " [cc]" if track.has_subtitles else ""
            lines.append(f"{marker}{index + 1:3d}. {track.name} ({track.duration_display}){subtitle_mark}")
        return "\n".join(lines)

    def help_text(self) -> str:
        lines = ["Commands:"]
        for action, label in _HELP_LABELS.items():
            words = ", ".join(self._aliases.get(action, []))
            if words:
                lines.append(f"  {words}: {label}")
        return "\n".join(lines)

    # --- handlers ---
    def _toggle_play(self, _arg: str) -> CommandResult:
        player = self._player
        if player.current_track is None and player.current_playlist:
            player.next_track()
        else:
            player.toggle_play_pause()
        return CommandResult(self.status_text())

    def _next(self, _arg: str) -> CommandResult:
        if not self._player.next_track():
            return CommandResult("End of playlist.")
        return CommandResult(self.status_text())

    def _previous(self, _arg: str) -> CommandResult:
        if not self._player.previous_track():
            return CommandResult("No previous track.")
        return CommandResult(self.status_text())

    def _stop(self, _arg: str) -> CommandResult:
        self._player.stop()
        return CommandResult("Stopped.")

    def _loop(self, _arg: str) -> CommandResult:
        enabled = self._player.loop_current_track()
        return CommandResult(f"Loop {'on' if enabled else 'off'}.")

    def _shuffle(self, _arg: str) -> CommandResult:
        enabled = self._player.shuffle_playlist()
        return CommandResult(f"Shuffle {'on' if enabled else 'off'}.")

    def _volume(self, arg: str) -> CommandResult:
        if not arg:
            return self._volume_text(self._player.volume)
        try:
            percent = float(arg.rstrip("%"))
        except ValueError:
            return CommandResult(f"Invalid volume: {arg}")
        return self._volume_text(self._player.set_volume(percent / 100.0))

    @staticmethod
    def _volume_text(volume: float) -> CommandResult:
        return CommandResult(f"Volume {round(volume * 100)}%.")

    def _goto(self, arg: str) -> CommandResult:
        try:
            number = int(arg)
        except ValueError:
            return CommandResult(f"Invalid track number: {arg or '(none)'}")
        if not self._player.play_at_index(number - 1):
            return CommandResult(f"No track {number}.")
        return CommandResult(self.status_text())

    def load(self, arg: str) -> CommandResult:
        if not arg:
            return CommandResult("Usage: load <directory>")
        try:
            future = self._player.load_directory(arg)
        except ValueError as exc:
            return CommandResult(f"Error: {exc}")
        future.add_done_callback(lambda done: self._player.submit(self._after_load, done))
        return CommandResult(f"Loading {arg} ...")

    def _after_load(self, future: Future) -> None:
        error = future.exception()
        if error is not None:
            self._emit(f"Error loading directory: {error}")
            return
        count = future.result()
        self._emit(f"Loaded {count} audio files.")
        if count and self._autoplay:
            try:
                self._player.next_track()
            except PlayerError as exc:
                self._emit(f"Error: {exc}")
                return
            self._emit(self.status_text())
