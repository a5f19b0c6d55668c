"""Centralized constants for the application."""

import re

# Encoder invocation
FFMPEG_BINARY = "ffmpeg"
FFPROBE_BINARY = "ffprobe"
FFMPEG_LOGLEVEL = "info"

# Progress markers found in ffmpeg's stats output
FRAME_MARKER = re.compile(r"frame=\s*(\d+)")
TIME_MARKER = re.compile(r"time=\s*(\d+):(\d+):(\d+(?:\.\d+)?)")

# Substrings flagging a line as an error (case-sensitive)
ERROR_MARKERS = ("Error", "failed")

# Result messages
SUCCESS_MESSAGE = "Success: GIF generated!"
FAILURE_PREFIX = "Failed:\n"
LAUNCH_FAILED_MESSAGE = "Error: could not start ffmpeg process"
LOG_FILE_FAILED_MESSAGE = "Error: could not create log file"
CANCELLED_MESSAGE = "Cancelled by user"

# Quality scale accepted by -q:v
QUALITY_MIN = 1
QUALITY_MAX = 31

# Temporary names used while applying a rename plan
RENAME_TEMP_PREFIX = ".seq2gif-tmp-"
