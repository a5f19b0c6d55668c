"""
External tool validation utilities for seq2gif.

This module checks that the encoder binaries the runner shells out to are
reachable on PATH.
"""

from __future__ import annotations

from shutil import which

from ..core.constants import FFMPEG_BINARY, FFPROBE_BINARY


def check_tools(require_ffprobe: bool = False) -> tuple[bool, list[str]]:
    """Check availability of required external tools.

    Args:
        require_ffprobe: Also require ffprobe (needed for duration probing).

    Returns:
        Tuple[bool, List[str]]: (all_ok, problems). If `all_ok` is False, problems lists the issues.
    """
    problems: list[str] = []
    if which(FFMPEG_BINARY) is None:
        problems.append(f"{FFMPEG_BINARY} not found in PATH")
    if require_ffprobe and which(FFPROBE_BINARY) is None:
        problems.append(f"{FFPROBE_BINARY} not found in PATH")
    return (len(problems) == 0, problems)
