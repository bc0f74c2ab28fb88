"""Entry point for the console player."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from datetime import datetime
from pathlib import Path
from threading import Thread
from typing import List, Optional, Sequence, TextIO

if __package__ is None or __package__ == "":
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from consoleplayer.audio.engine import create_backend
from consoleplayer.commands import CommandDispatcher
from consoleplayer.core.config import SettingsManager
from consoleplayer.core.scanner import AudioFileScanner
from consoleplayer.core.subtitles import SrtSubtitleParser
from consoleplayer.playback.controller import MusicPlayer


_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _resolve_level(configured: Optional[str]) -> int:
    name = (os.environ.get("LOGLEVEL") or configured or "WARNING").upper()
    return getattr(logging, name, logging.WARNING)


def _open_log_file(candidates: Sequence[Path]) -> Optional[logging.FileHandler]:
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    for directory in candidates:
        try:
            directory.mkdir(parents=True, exist_ok=True)
            return logging.FileHandler(directory / f"consoleplayer-{stamp}.log", encoding="utf-8")
        except OSError:
            continue
    return None


def configure_logging(
    level: Optional[str] = None,
    *,
    logs_dir: Optional[Path] = None,
    to_file: bool = True,
) -> Optional[Path]:
    """Send log records to stderr and, with ``to_file``, to a timestamped file.

    ``LOGLEVEL`` from the environment wins over ``level``. The file lands in
    ``logs_dir`` (default ``./logs``) or, if that cannot be created, in a
    temp directory. Returns the log file path, or None without a file.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    file_handler: Optional[logging.FileHandler] = None
    if to_file:
        file_handler = _open_log_file(
            [logs_dir or Path.cwd() / "logs", Path(tempfile.gettempdir()) / "consoleplayer_logs"]
        )
        if file_handler is not None:
            handlers.append(file_handler)
    formatter = logging.Formatter(_LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
    logging.basicConfig(level=_resolve_level(level), handlers=handlers, force=True)

    log = logging.getLogger(__name__)
    if file_handler is None:
        if to_file:
            log.warning("No writable log directory, logging to stderr only")
        return None
    log_path = Path(file_handler.baseFilename)
    log.info("Writing log to %s", log_path)
    return log_path


def build_player(settings: SettingsManager, *, force_mock: bool = False, subtitle_listener=None) -> MusicPlayer:
    scanner = AudioFileScanner(
        settings.get_audio_extensions(),
        SrtSubtitleParser(),
        subtitle_extensions=settings.get_subtitle_extensions(),
        recursive=settings.get_recursive_scan(),
    )
    backend = create_backend(settings, force_mock=force_mock)
    return MusicPlayer(backend, scanner, settings=settings, subtitle_listener=subtitle_listener)


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="consoleplayer", description="Play a directory of audio files.")
    parser.add_argument("directory", nargs="?", help="directory to load on start")
    parser.add_argument("--config", type=Path, help="path to settings.yaml")
    parser.add_argument("--mock", action="store_true", help="simulate playback without an audio device")
    return parser.parse_args(argv)


def _read_commands(player: MusicPlayer, dispatcher: CommandDispatcher, stream: TextIO) -> None:
    def _run(line: str) -> None:
        result = dispatcher.dispatch(line)
        if result.text:
            print(result.text)
        if result.quit:
            player.shutdown()

    for line in stream:
        player.post(_run, line)
        if dispatcher.resolve(line.strip().partition(" ")[0]) == "quit":
            return
    player.post(player.shutdown)


def run(argv: Optional[Sequence[str]] = None, *, stdin: TextIO | None = None) -> int:
    """Start the command loop; returns the process exit code."""
    args = _parse_args(argv)
    settings = SettingsManager(config_path=args.config) if args.config else SettingsManager()
    configure_logging(
        settings.get_diagnostics_log_level(),
        logs_dir=settings.get_log_directory(),
        to_file=settings.get_log_to_file(),
    )
    log = logging.getLogger(__name__)

    def _show_subtitle(text: Optional[str]) -> None:
        if text:
            print(f"  ~ {text}")

    with build_player(settings, force_mock=args.mock, subtitle_listener=_show_subtitle) as player:
        dispatcher = CommandDispatcher(player, settings.get_command_aliases())
        print(dispatcher.help_text())

        directory = args.directory or settings.get_startup_directory()
        if directory:
            player.post(lambda path: print(dispatcher.load(path).text), str(directory))

        reader = Thread(
            target=_read_commands,
            args=(player, dispatcher, stdin or sys.stdin),
            name="consoleplayer-input",
            daemon=True,
        )
        reader.start()
        try:
            player.serve_forever()
        except KeyboardInterrupt:
            log.info("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(run())
