"""Exception types shared across the player."""

from __future__ import annotations

from pathlib import Path


class PlayerError(Exception):
    """Base class for player failures."""


class PlaylistLoadError(PlayerError):
    """Loading a directory into the playlist failed; the previous playlist stays active."""

    def __init__(self, message: str, directory: str | Path | None = None) -> None:
        super().__init__(message)
        self.directory = directory


class DirectoryScanError(PlaylistLoadError):
    """The directory could not be enumerated."""


class PlaylistBuildError(PlaylistLoadError):
    """Files were found but the playlist could not be built from them."""


class SubtitleParseError(PlayerError):
    def __init__(self, message: str, path: str | Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class PlaybackError(PlayerError):
    """The audio backend could not start or control playback."""
