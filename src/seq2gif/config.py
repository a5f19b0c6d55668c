"""
Consolidated configuration system for seq2gif.

This module provides a Pydantic-based configuration system that gathers the
encoder defaults, the sequence renaming scheme and the runner tuning knobs
into a single structure with environment variable support and validation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =============================================================================
# ENCODE SETTINGS
# =============================================================================

class EncodeSettings(BaseModel):
    """Default values for the user-facing encode parameters."""

    output_path: Annotated[str, Field(
        min_length=1,
        description="Path of the generated animation"
    )] = "output.gif"

    framerate: Annotated[int, Field(
        gt=0,
        description="Input framerate (fps)"
    )] = 10

    width: Annotated[int, Field(
        gt=0,
        description="Output width in pixels; height keeps the aspect ratio"
    )] = 320

    quality: Annotated[int | None, Field(
        ge=1,
        le=31,
        description="Optional -q:v value (1-31, lower is better)"
    )] = None

    loop_count: Annotated[int, Field(
        ge=0,
        description="Loop count written to the GIF (0 = infinite)"
    )] = 0

    extension: Annotated[str, Field(
        min_length=1,
        description="Extension of the source images, without the dot"
    )] = "jpg"

    @field_validator("extension")
    @classmethod
    def strip_leading_dot(cls, v: str) -> str:
        """Accept both 'jpg' and '.jpg'."""
        v = v.lstrip(".")
        if not v:
            raise ValueError("extension must not be empty")
        return v


# =============================================================================
# RENAME SETTINGS
# =============================================================================

class RenameSettings(BaseModel):
    """Canonical naming scheme applied by the sequence normalizer."""

    prefix: Annotated[str, Field(
        description="Filename prefix of normalized frames"
    )] = "image_"

    pad_width: Annotated[int, Field(
        ge=1,
        le=10,
        description="Zero-padding width of the frame counter"
    )] = 3


# =============================================================================
# RUNNER SETTINGS
# =============================================================================

class RunnerSettings(BaseModel):
    """Subprocess driver and progress smoothing configuration."""

    smooth_step: Annotated[float, Field(
        gt=0.0,
        le=1.0,
        description="Increment used when animating progress toward a new target"
    )] = 0.01

    smooth_delay: Annotated[float, Field(
        ge=0.0,
        description="Delay in seconds between two smoothing increments"
    )] = 0.01

    assumed_duration_sec: Annotated[float, Field(
        gt=0.0,
        description="Total duration assumed by the elapsed-time strategy"
    )] = 600.0

    log_file: Annotated[str | None, Field(
        description="Per-run log of raw ffmpeg output (truncated on each run); None disables it"
    )] = "ffmpeg.log"

    strategy: Annotated[Literal["frames", "time"], Field(
        description="Progress extraction strategy"
    )] = "frames"


# =============================================================================
# MAIN APPLICATION CONFIGURATION
# =============================================================================

class AppConfig(BaseSettings):
    """
    Main application configuration with environment variable support.

    All settings can be overridden via environment variables with SEQ2GIF_ prefix.
    Example: SEQ2GIF_RUNNER__SMOOTH_DELAY=0
    """

    encode: EncodeSettings = EncodeSettings()
    rename: RenameSettings = RenameSettings()
    runner: RunnerSettings = RunnerSettings()

    model_config = SettingsConfigDict(
        env_prefix="SEQ2GIF_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    def input_pattern(self, directory: str = ".") -> str:
        """printf-style pattern matching the normalized frame names."""
        name = f"{self.rename.prefix}%0{self.rename.pad_width}d.{self.encode.extension}"
        return str(Path(directory) / name)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def create_config_from_env() -> AppConfig:
    """Create a new configuration instance from environment variables."""
    return AppConfig()
