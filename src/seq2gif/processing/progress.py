"""
Progress extraction from ffmpeg output.

ffmpeg reports its state on stderr as stats lines such as
``frame=   42 fps=0.0 q=-0.0 size=  1024kB time=00:00:04.20 bitrate=...``.
Two strategies turn those markers into a fraction of work done: counting
frames against the number of source images, or comparing the elapsed media
time against a total duration.
"""

from __future__ import annotations

from collections.abc import Iterator

from ..core.constants import ERROR_MARKERS, FRAME_MARKER, TIME_MARKER


def parse_frame(line: str) -> int | None:
    """Return N from the first ``frame=N`` marker in `line`, if any."""
    match = FRAME_MARKER.search(line)
    if not match:
        return None
    return int(match.group(1))


def parse_time(line: str) -> float | None:
    """Return the seconds encoded by the first ``time=HH:MM:SS.ff`` marker, if any."""
    match = TIME_MARKER.search(line)
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def is_error_line(line: str) -> bool:
    return any(marker in line for marker in ERROR_MARKERS)


class FrameCountStrategy:
    """progress = frame / total source images."""

    name = "frames"

    def __init__(self, total_frames: int) -> None:
        self.total_frames = total_frames

    def target(self, line: str) -> float | None:
        frame = parse_frame(line)
        if frame is None:
            return None
        if self.total_frames <= 0:
            return 0.0
        return frame / self.total_frames


class ElapsedTimeStrategy:
    """progress = elapsed media time / total duration.

    The total is an estimate: either a probed duration or the fixed fallback.
    """

    name = "time"

    def __init__(self, total_seconds: float) -> None:
        self.total_seconds = total_seconds

    def target(self, line: str) -> float | None:
        elapsed = parse_time(line)
        if elapsed is None:
            return None
        if self.total_seconds <= 0:
            return 0.0
        return elapsed / self.total_seconds


ProgressStrategy = FrameCountStrategy | ElapsedTimeStrategy


class ProgressTracker:
    """Line-by-line state of one run: progress target and captured errors.

    The target never decreases and never exceeds 1.0.
    """

    def __init__(self, strategy: ProgressStrategy) -> None:
        self.strategy = strategy
        self.target = 0.0
        self._errors: list[str] = []

    def feed(self, line: str) -> float:
        """Consume one output line and return the (possibly advanced) target."""
        value = self.strategy.target(line)
        if value is not None:
            self.target = max(self.target, min(1.0, value))
        if is_error_line(line):
            self._errors.append(line)
        return self.target

    @property
    def error_text(self) -> str:
        return "\n".join(self._errors)

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)


def smooth_steps(current: float, target: float, step: float) -> Iterator[float]:
    """Yield values from `current` up to `target` in increments of `step`.

    The last value is exactly `target`; nothing is yielded when
    `current >= target`.
    """
    value = current
    while value < target:
        value = min(target, value + step)
        yield value
