"""
FFmpeg command building module for seq2gif.

This module turns raw encode parameters into an ffmpeg argument vector,
collecting every validation problem instead of stopping at the first one.
Commands are argument lists and are never passed through a shell.
"""

from __future__ import annotations

from pydantic import ValidationError

from ..core.constants import FFMPEG_BINARY, FFMPEG_LOGLEVEL, QUALITY_MAX, QUALITY_MIN
from ..core.errors import CommandValidationError
from ..core.types import BuildResult, CommandParams, CommandSpec

# One message per field, reported in field order
FIELD_MESSAGES = {
    "framerate": "framerate must be a positive integer",
    "width": "width must be a positive integer",
    "quality": f"quality must be an integer between {QUALITY_MIN} and {QUALITY_MAX} (lower is better)",
    "loop_count": "loop count must be a non-negative integer (0 = infinite)",
    "input_pattern": "input pattern must not be empty",
    "output_path": "output path must not be empty",
}
FIELD_ORDER = list(FIELD_MESSAGES)


class FFmpegCommandBuilder:
    """Builder class for constructing FFmpeg commands."""

    @staticmethod
    def validate(params: CommandParams) -> tuple[CommandSpec | None, list[str]]:
        """Validate raw parameters.

        Returns:
            (spec, []) when every field is valid, else (None, messages).
        """
        try:
            spec = CommandSpec.model_validate(vars(params))
        except ValidationError as ex:
            failed = {str(err["loc"][0]) for err in ex.errors() if err.get("loc")}
            return None, [FIELD_MESSAGES[name] for name in FIELD_ORDER if name in failed]
        return spec, []

    @staticmethod
    def build_gif_cmd(spec: CommandSpec) -> list[str]:
        """Create the ffmpeg command encoding an image sequence to an animation."""
        cmd = [
            FFMPEG_BINARY,
            "-hide_banner",
            "-loglevel", FFMPEG_LOGLEVEL,
            "-framerate", str(spec.framerate),
            "-i", spec.input_pattern,
            "-vf", f"scale={spec.width}:-1",
        ]
        if spec.quality is not None:
            cmd += ["-q:v", str(spec.quality)]
        cmd += ["-loop", str(spec.loop_count), "-y", spec.output_path]
        return cmd

    @staticmethod
    def build(params: CommandParams) -> BuildResult:
        """Validate and build in one step; never raises on bad input."""
        spec, errors = FFmpegCommandBuilder.validate(params)
        if spec is None:
            return BuildResult(argv=None, errors=errors)
        return BuildResult(argv=FFmpegCommandBuilder.build_gif_cmd(spec))


def build_command(params: CommandParams) -> list[str]:
    """Return the argument vector for `params`.

    Raises:
        CommandValidationError: carrying every failing field's message.
    """
    result = FFmpegCommandBuilder.build(params)
    if not result.ok:
        raise CommandValidationError(result.errors)
    return result.argv
