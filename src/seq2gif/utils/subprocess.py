"""Subprocess and external command utilities."""

import subprocess
from pathlib import Path

from ..core.constants import FFPROBE_BINARY


def run_subprocess(cmd: list[str], *, timeout: int | None = None) -> tuple[int, str, str]:
    """Run a short-lived command to completion.

    Args:
        cmd: Command and arguments list
        timeout: Optional timeout in seconds

    Returns:
        Tuple of (return_code, stdout, stderr); return_code is -1 when the
        command could not run at all.
    """
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        return result.returncode, result.stdout, result.stderr
    except subprocess.TimeoutExpired:
        return -1, "", f"Command timed out after {timeout} seconds"
    except OSError as e:
        return -1, "", str(e)


def probe_duration(path: str | Path, *, timeout: int | None = 30) -> float | None:
    """Return the media duration of `path` in seconds using ffprobe.

    Works on image-sequence patterns such as ``image_%03d.jpg`` too. Returns
    None when ffprobe is missing, fails, or reports no usable duration.
    """
    cmd = [
        FFPROBE_BINARY,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path),
    ]
    code, out, _ = run_subprocess(cmd, timeout=timeout)
    if code != 0:
        return None
    try:
        duration = float(out.strip().splitlines()[0])
    except (IndexError, ValueError):
        return None
    return duration if duration > 0 else None


def estimate_sequence_duration(frame_count: int, framerate: int) -> float | None:
    """Playback length of `frame_count` images shown at `framerate` fps."""
    if frame_count <= 0 or framerate <= 0:
        return None
    return frame_count / framerate
