from pathlib import Path

import pytest

from consoleplayer.core.errors import SubtitleParseError
from consoleplayer.core.subtitles import (
    SrtSubtitleParser,
    SubtitleSpan,
    SubtitleTrack,
    parse_srt_lines,
    parse_timestamp,
)


def test_span_is_active_on_both_boundaries() -> None:
    span = SubtitleSpan(1.0, 3.0, "Hello")

    assert not span.is_active_at(0.999)
    assert span.is_active_at(1.0)
    assert span.is_active_at(2.0)
    assert span.is_active_at(3.0)
    assert not span.is_active_at(3.001)


def test_span_rejects_end_before_start() -> None:
    with pytest.raises(ValueError):
        SubtitleSpan(5.0, 4.0, "backwards")


def test_zero_length_span_is_allowed() -> None:
    span = SubtitleSpan(2.0, 2.0, "blink")

    assert span.is_active_at(2.0)


def test_track_lookup_returns_none_in_gaps() -> None:
    track = SubtitleTrack(spans=[SubtitleSpan(1.0, 3.0, "Hello"), SubtitleSpan(5.0, 6.0, "World")])

    assert track.get_active_span_at(0.5) is None
    assert track.get_active_span_at(4.0) is None
    assert track.get_active_span_at(5.5).text == "World"


def test_overlapping_spans_resolve_to_first_inserted() -> None:
    track = SubtitleTrack()
    wide = SubtitleSpan(0.0, 10.0, "A")
    narrow = SubtitleSpan(2.0, 3.0, "B")
    track.add_span(wide)
    track.add_span(narrow)

    assert track.get_active_span_at(2.5) is wide
    assert len(track) == 2


def test_parse_timestamp_accepts_comma_and_dot() -> None:
    assert parse_timestamp("00:00:01,500") == pytest.approx(1.5)
    assert parse_timestamp("01:02:03.004") == pytest.approx(3723.004)


def test_parse_srt_lines_builds_multiline_spans() -> None:
    lines = [
        "1",
        "00:00:01,000 --> 00:00:03,000",
        "First line",
        "second line",
        "",
        "2",
        "00:00:04,250 --> 00:00:05,000",
        "Next",
    ]

    track = parse_srt_lines(lines, file_path="song.srt")

    assert [span.text for span in track.spans] == ["First line\nsecond line", "Next"]
    assert track.spans[1].start_seconds == pytest.approx(4.25)
    assert track.file_path == Path("song.srt")


def test_parse_srt_lines_skips_blocks_without_timing() -> None:
    lines = ["1", "not a timing line", "text", "", "2", "00:00:01,000 --> 00:00:02,000", "ok"]

    track = parse_srt_lines(lines)

    assert [span.text for span in track.spans] == ["ok"]


def test_parser_reads_file_with_bom_and_crlf(tmp_path: Path) -> None:
    srt = tmp_path / "song.srt"
    srt.write_bytes(
        "\ufeff1\r\n00:00:00,500 --> 00:00:01,500\r\nZażółć\r\n\r\n".encode("utf-8")
    )

    track = SrtSubtitleParser().parse(srt)

    assert len(track) == 1
    assert track.spans[0].text == "Zażółć"
    assert track.get_active_span_at(1.0) is track.spans[0]


def test_parser_reports_backwards_timing(tmp_path: Path) -> None:
    srt = tmp_path / "broken.srt"
    srt.write_text("1\n00:00:05,000 --> 00:00:01,000\noops\n", encoding="utf-8")

    with pytest.raises(SubtitleParseError) as excinfo:
        SrtSubtitleParser().parse(srt)

    assert excinfo.value.path == srt


def test_parser_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SubtitleParseError):
        SrtSubtitleParser().parse(tmp_path / "missing.srt")
