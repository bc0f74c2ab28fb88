"""Helpers for reading audio tags and duration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Collection, Optional

from mutagen import File as MutagenFile


logger = logging.getLogger(__name__)

DEFAULT_AUDIO_EXTENSIONS = (".mp3", ".wav", ".ogg", ".flac")


@dataclass(slots=True)
class AudioMetadata:
    title: str
    duration_seconds: float
    artist: Optional[str] = None


def is_supported_audio_file(path: Path, extensions: Collection[str] = DEFAULT_AUDIO_EXTENSIONS) -> bool:
    return path.suffix.lower() in {ext.lower() for ext in extensions}


def _tag_text(tag) -> Optional[str]:
    # mutagen returns frames with a .text list (ID3) or plain lists of strings (Vorbis)
    if tag is None:
        return None
    if hasattr(tag, "text"):
        text = tag.text
        if isinstance(text, (list, tuple)):
            return str(text[0]) if text else None
        return str(text) if text else None
    if isinstance(tag, (list, tuple)):
        return str(tag[0]) if tag else None
    value = str(tag)
    return value or None


def extract_metadata(path: Path) -> AudioMetadata:
    """Return title, artist and duration of an audio file.

    If reading metadata fails, fall back to the file name and duration 0.
    """

    title = path.stem
    duration = 0.0
    artist: Optional[str] = None

    try:
        audio = MutagenFile(path)
        if audio is None:
            return AudioMetadata(title=title, duration_seconds=duration)
        if audio.tags:
            title = _tag_text(audio.tags.get("TIT2") or audio.tags.get("title")) or title
            artist = _tag_text(audio.tags.get("TPE1") or audio.tags.get("artist"))
        if hasattr(audio, "info") and getattr(audio.info, "length", None):
            duration = float(audio.info.length)
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Failed to read metadata %s: %s", path, exc)

    return AudioMetadata(title=title, duration_seconds=duration, artist=artist)
