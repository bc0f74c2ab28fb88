"""Directory scanning: audio files become tracks, like-named captions get attached."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Collection, Iterable, List, Optional

from consoleplayer.core.errors import SubtitleParseError
from consoleplayer.core.media_metadata import (
    DEFAULT_AUDIO_EXTENSIONS,
    AudioMetadata,
    extract_metadata,
    is_supported_audio_file,
)
from consoleplayer.core.playlist import Track
from consoleplayer.core.subtitles import SrtSubtitleParser, SubtitleTrack


logger = logging.getLogger(__name__)

DEFAULT_SUBTITLE_EXTENSIONS = (".srt",)


class AudioFileScanner:
    """Turn a directory listing into a list of :class:`Track` objects."""

    def __init__(
        self,
        extensions: Collection[str] = DEFAULT_AUDIO_EXTENSIONS,
        subtitle_parser: Optional[SrtSubtitleParser] = None,
        *,
        subtitle_extensions: Collection[str] = DEFAULT_SUBTITLE_EXTENSIONS,
        recursive: bool = False,
        metadata_reader: Callable[[Path], AudioMetadata] = extract_metadata,
    ) -> None:
        self._extensions = tuple(ext.lower() for ext in extensions)
        self._subtitle_parser = subtitle_parser if subtitle_parser is not None else SrtSubtitleParser()
        self._subtitle_extensions = tuple(subtitle_extensions)
        self._recursive = recursive
        self._metadata_reader = metadata_reader

    @property
    def extensions(self) -> tuple[str, ...]:
        return self._extensions

    def scan(self, directory: str | Path | None) -> List[Track]:
        """Return supported audio files in ``directory`` as tracks.

        Raises ``ValueError`` for a blank path, ``FileNotFoundError`` when the
        directory does not exist and ``NotADirectoryError`` for a file path.
        """
        if directory is None or not str(directory).strip():
            raise ValueError("Directory path cannot be empty.")
        root = Path(str(directory).strip()).expanduser()
        if not root.exists():
            raise FileNotFoundError(f"Directory not found: {root}")
        if not root.is_dir():
            raise NotADirectoryError(f"Not a directory: {root}")

        tracks = [self._build_track(path) for path in self._iter_audio_files(root)]
        logger.info(
            "Scanned %s: %d tracks (%d with subtitles)",
            root,
            len(tracks),
            sum(1 for track in tracks if track.has_subtitles),
        )
        return tracks

    def _iter_audio_files(self, root: Path) -> Iterable[Path]:
        candidates = root.rglob("*") if self._recursive else root.iterdir()
        files = [
            path
            for path in candidates
            if path.is_file() and is_supported_audio_file(path, self._extensions)
        ]
        files.sort(key=lambda path: (str(path.parent).lower(), path.name.lower()))
        return files

    def _build_track(self, path: Path) -> Track:
        metadata = self._metadata_reader(path)
        track = Track(
            path=path,
            name=path.name,
            title=metadata.title,
            artist=metadata.artist,
            duration_seconds=metadata.duration_seconds,
        )
        subtitles = self._load_subtitles(path)
        if subtitles is not None:
            track.attach_subtitles(subtitles)
        return track

    def find_subtitle_file(self, audio_path: Path) -> Optional[Path]:
        for extension in self._subtitle_extensions:
            for candidate in (audio_path.with_suffix(extension), audio_path.with_suffix(extension.upper())):
                if candidate.is_file():
                    return candidate
        return None

    def _load_subtitles(self, audio_path: Path) -> Optional[SubtitleTrack]:
        subtitle_path = self.find_subtitle_file(audio_path)
        if subtitle_path is None:
            return None
        try:
            return self._subtitle_parser.parse(subtitle_path)
        except SubtitleParseError as exc:
            logger.warning("Skipping subtitles for %s: %s", audio_path.name, exc)
            return None
