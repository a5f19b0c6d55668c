import io

import pytest

from seq2gif.processing.progress import (
    ElapsedTimeStrategy,
    FrameCountStrategy,
    ProgressTracker,
    parse_frame,
    parse_time,
    smooth_steps,
)
from seq2gif.processing.runner import iter_output_lines

STATS = "frame=   42 fps=0.0 q=-0.0 size=    1024kB time=00:01:30.50 bitrate=1.2kbits/s speed=2x"


def test_parse_markers_from_stats_line():
    assert parse_frame(STATS) == 42
    assert parse_time(STATS) == pytest.approx(90.5)
    assert parse_frame("Input #0, image2, from 'image_%03d.jpg':") is None
    assert parse_time("time=N/A") is None


def test_frame_strategy_targets():
    tracker = ProgressTracker(FrameCountStrategy(100))
    targets = [tracker.feed(line) for line in ["frame=10", "frame=50"]]
    assert targets == [pytest.approx(0.10), pytest.approx(0.50)]


def test_target_is_monotonic_and_capped():
    tracker = ProgressTracker(FrameCountStrategy(10))
    seen = [tracker.feed(line) for line in ["frame=8", "frame=3", "frame=25", "no marker here"]]
    assert seen == [pytest.approx(0.8), pytest.approx(0.8), 1.0, 1.0]


def test_frame_strategy_without_images_stays_at_zero():
    tracker = ProgressTracker(FrameCountStrategy(0))
    assert tracker.feed("frame=5") == 0.0


def test_time_strategy_uses_fixed_duration():
    tracker = ProgressTracker(ElapsedTimeStrategy(600))
    assert tracker.feed("size=1kB time=00:05:00.00 bitrate=N/A") == pytest.approx(0.5)
    assert tracker.feed("time=01:00:00.00") == 1.0


def test_error_lines_are_collected_verbatim():
    tracker = ProgressTracker(FrameCountStrategy(10))
    tracker.feed("frame=1")
    tracker.feed("[image2 @ 0x1] Could not open file : image_002.jpg")
    tracker.feed("Error while decoding stream #0:0")
    tracker.feed("av_interleaved_write_frame(): failed to write")
    tracker.feed("Conversion FAILED")  # markers are case-sensitive
    assert tracker.has_errors
    assert tracker.error_text == (
        "Error while decoding stream #0:0\n"
        "av_interleaved_write_frame(): failed to write"
    )


def test_smooth_steps_reach_target_exactly():
    assert list(smooth_steps(0.0, 1.0, 0.25)) == [0.25, 0.5, 0.75, 1.0]
    values = list(smooth_steps(0.0, 0.1, 0.03))
    assert values[-1] == 0.1
    assert all(a < b for a, b in zip(values, values[1:]))
    assert list(smooth_steps(0.5, 0.4, 0.01)) == []


def test_output_lines_split_on_carriage_returns():
    stream = io.StringIO("header\nframe=1 time=00:00:00.10\rframe=2 time=00:00:00.20\r\nend\n")
    assert list(iter_output_lines(stream)) == [
        "header",
        "frame=1 time=00:00:00.10",
        "frame=2 time=00:00:00.20",
        "end",
    ]
