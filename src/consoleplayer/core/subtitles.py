"""Subtitle spans, per-track subtitle lookup and SRT parsing."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from consoleplayer.core.errors import SubtitleParseError


logger = logging.getLogger(__name__)

_TIMESTAMP_RE = re.compile(
    r"(?P<start>\d{1,2}:\d{2}:\d{2}[,.]\d{1,3})\s*-->\s*(?P<end>\d{1,2}:\d{2}:\d{2}[,.]\d{1,3})"
)


@dataclass(frozen=True, eq=False)
class SubtitleSpan:
    """Caption text shown while playback is inside ``[start_seconds, end_seconds]``."""

    start_seconds: float
    end_seconds: float
    text: str = ""

    def __post_init__(self) -> None:
        if self.end_seconds < self.start_seconds:
            raise ValueError(
                f"Subtitle ends before it starts ({self.start_seconds:.3f}s > {self.end_seconds:.3f}s)"
            )
        if self.text is None:
            object.__setattr__(self, "text", "")

    def is_active_at(self, position_seconds: float) -> bool:
        # both ends inclusive
        return self.start_seconds <= position_seconds <= self.end_seconds


class SubtitleTrack:
    """Ordered subtitle spans belonging to one audio file.

    Spans are kept in insertion order and may overlap. Lookups scan from the
    front and report the first covering span, so an earlier-inserted span wins
    over a later, tighter one.
    """

    def __init__(self, file_path: str | Path | None = None, spans: Iterable[SubtitleSpan] = ()) -> None:
        self.file_path = Path(file_path) if file_path is not None else None
        self._spans: List[SubtitleSpan] = list(spans)

    @property
    def spans(self) -> Tuple[SubtitleSpan, ...]:
        return tuple(self._spans)

    def add_span(self, span: SubtitleSpan) -> None:
        self._spans.append(span)

    def get_active_span_at(self, position_seconds: float) -> Optional[SubtitleSpan]:
        for span in self._spans:
            if span.is_active_at(position_seconds):
                return span
        return None

    def __len__(self) -> int:
        return len(self._spans)

    def __repr__(self) -> str:
        return f"SubtitleTrack(file_path={self.file_path!r}, spans={len(self._spans)})"


def parse_timestamp(value: str) -> float:
    """Convert ``HH:MM:SS,mmm`` (or ``HH:MM:SS.mmm``) into seconds."""
    clock, _, millis = value.strip().replace(".", ",").partition(",")
    hours, minutes, seconds = (int(part) for part in clock.split(":"))
    fraction = int(millis.ljust(3, "0")[:3]) if millis else 0
    return hours * 3600 + minutes * 60 + seconds + fraction / 1000.0


def parse_srt_lines(lines: Iterable[str], *, file_path: str | Path | None = None) -> SubtitleTrack:
    """Build a track from SRT lines.

    Blocks without a valid timing line are skipped. A block whose end time
    precedes its start raises ``ValueError``.
    """
    track = SubtitleTrack(file_path)
    text_lines: List[str] = []
    timing: Optional[Tuple[float, float]] = None

    def _flush() -> None:
        nonlocal timing, text_lines
        if timing is not None:
            track.add_span(SubtitleSpan(timing[0], timing[1], "\n".join(text_lines)))
        timing = None
        text_lines = []

    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line.strip():
            _flush()
            continue
        if timing is None:
            match = _TIMESTAMP_RE.search(line)
            if match:
                timing = (parse_timestamp(match.group("start")), parse_timestamp(match.group("end")))
            # anything else before the timing line is the cue index or junk
            continue
        text_lines.append(line)
    _flush()
    return track


class SrtSubtitleParser:
    """Read ``.srt`` caption files into :class:`SubtitleTrack` objects."""

    encoding = "utf-8-sig"

    def parse(self, path: str | Path) -> SubtitleTrack:
        path = Path(path)
        try:
            content = path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise SubtitleParseError(f"Cannot read subtitle file {path}: {exc}", path) from exc
        try:
            track = parse_srt_lines(content.splitlines(), file_path=path)
        except ValueError as exc:
            raise SubtitleParseError(f"Invalid subtitle timing in {path}: {exc}", path) from exc
        logger.debug("Parsed %d subtitle spans from %s", len(track), path)
        return track
