"""Playlist data models and navigation logic."""

from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Deque, Iterable, List, Optional, Sequence, Set, Tuple

from consoleplayer.core.subtitles import SubtitleTrack


@dataclass
class Track:
    path: Path
    name: str
    title: str = ""
    artist: Optional[str] = None
    duration_seconds: float = 0.0
    subtitles: Optional[SubtitleTrack] = None

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        if not self.title:
            self.title = self.path.stem

    @classmethod
    def from_path(cls, path: str | Path) -> "Track":
        path = Path(path)
        return cls(path=path, name=path.name)

    @property
    def has_subtitles(self) -> bool:
        return self.subtitles is not None

    @property
    def duration_display(self) -> str:
        minutes, seconds = divmod(int(self.duration_seconds), 60)
        return f"{minutes:02d}:{seconds:02d}"

    @property
    def display_title(self) -> str:
        if self.artist:
            return f"{self.artist} - {self.title}"
        return self.title

    def attach_subtitles(self, subtitles: SubtitleTrack) -> None:
        if self.subtitles is not None:
            raise ValueError(f"Subtitles already attached to {self.name}")
        self.subtitles = subtitles


class Playlist:
    """Ordered tracklist with history-aware navigation and shuffle.

    The tracklist itself never changes between loads. Navigation state is a
    history stack of visited indices, a queue of indices still to come and
    the set of indices that have ever been current. Shuffling only reorders
    the queue of unplayed indices.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()
        self._files: Tuple[Track, ...] = ()
        self._current: Optional[int] = None
        self._history: List[int] = []
        self._future: Deque[int] = deque()
        self._played: Set[int] = set()
        self._shuffling = False

    @property
    def files(self) -> Tuple[Track, ...]:
        return self._files

    @property
    def current_index(self) -> int:
        return -1 if self._current is None else self._current

    @property
    def current_file(self) -> Optional[Track]:
        if self._current is None:
            return None
        return self._files[self._current]

    @property
    def is_shuffling(self) -> bool:
        return self._shuffling

    @property
    def history(self) -> Tuple[int, ...]:
        return tuple(self._history)

    @property
    def future(self) -> Tuple[int, ...]:
        return tuple(self._future)

    @property
    def played(self) -> frozenset[int]:
        return frozenset(self._played)

    def __len__(self) -> int:
        return len(self._files)

    def load_files(self, tracks: Optional[Iterable[Track]]) -> None:
        if tracks is None:
            raise ValueError("tracks must not be None")
        self._files = tuple(tracks)
        self.reset()

    def reset(self) -> None:
        self._history.clear()
        self._played.clear()
        self._future = deque(range(len(self._files)))
        self._current = None
        self._shuffling = False

    def move_next(self) -> bool:
        if not self._future:
            return False
        if self._current is not None:
            self._history.append(self._current)
        self._current = self._future.popleft()
        self._played.add(self._current)
        return True

    def move_previous(self) -> bool:
        if not self._history:
            return False
        if self._current is not None:
            # the track we leave becomes the next candidate again
            self._future.appendleft(self._current)
        self._current = self._history.pop()
        return True

    def move_to_index(self, index: int) -> bool:
        if not 0 <= index < len(self._files):
            return False
        if self._current is not None:
            self._history.append(self._current)
        self._current = index
        self._played.add(index)
        self._future = deque(pending for pending in self._future if pending != index)
        return True

    def toggle_shuffle(self) -> None:
        self._shuffling = not self._shuffling
        pending = [index for index in range(len(self._files)) if index not in self._played]
        if self._shuffling:
            self._rng.shuffle(pending)
        self._future = deque(pending)

    def index_of(self, track: Track) -> int:
        for index, candidate in enumerate(self._files):
            if candidate is track:
                return index
        return -1

    def upcoming(self, limit: Optional[int] = None) -> List[Track]:
        """Tracks in the order ``move_next`` would visit them."""
        indices: Sequence[int] = list(self._future)
        if limit is not None:
            indices = indices[: max(0, limit)]
        return [self._files[index] for index in indices]
