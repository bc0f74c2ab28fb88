"""Console media player: directory playlists, shuffle history and synced subtitles."""

__version__ = "0.3.0"
