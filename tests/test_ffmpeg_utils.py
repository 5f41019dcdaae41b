from __future__ import annotations

import pytest

from vidsub.utils.ffmpeg import out_time_s, parse_duration_s, parse_progress_line, resolve_ffmpeg_bin


def test_parse_duration_from_banner_line() -> None:
    line = "  Duration: 00:01:02.50, start: 0.000000, bitrate: 1205 kb/s"
    assert parse_duration_s(line) == pytest.approx(62.5)
    assert parse_duration_s("  Duration: N/A, bitrate: N/A") is None
    assert parse_duration_s("Stream #0:1(und): Audio: aac") is None


def test_parse_progress_line() -> None:
    assert parse_progress_line("out_time_us=1500000\n") == ("out_time_us", "1500000")
    assert parse_progress_line("progress=end") == ("progress", "end")
    assert parse_progress_line("garbage") is None
    assert parse_progress_line("=1") is None


def test_out_time_s_handles_all_position_keys() -> None:
    assert out_time_s("out_time_us", "2500000") == pytest.approx(2.5)
    assert out_time_s("out_time_ms", "2500000") == pytest.approx(2.5)
    assert out_time_s("out_time", "00:00:03.250000") == pytest.approx(3.25)
    assert out_time_s("out_time_us", "N/A") is None
    assert out_time_s("bitrate", "20.0kbits/s") is None


def test_resolve_ffmpeg_bin_prefers_existing_path(tmp_path) -> None:
    fake = tmp_path / "ffmpeg"
    fake.write_text("#!/bin/sh\n")
    assert resolve_ffmpeg_bin(str(fake)) == str(fake)
