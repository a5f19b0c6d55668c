"""
Core data types for seq2gif.

This module contains the data classes shared by the normalizer, the command
builder and the runner. Encode parameters are validated with Pydantic; the
transient rename records and run results are plain dataclasses.
"""

from __future__ import annotations

import shlex
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import QUALITY_MAX, QUALITY_MIN


# =============================================================================
# SEQUENCE NORMALIZATION
# =============================================================================

@dataclass(frozen=True)
class ImageFile:
    """A source image carrying a trailing numeric suffix."""

    path: Path
    number_text: str  # digits as found, leading zeros kept

    @property
    def number(self) -> int:
        return int(self.number_text)


@dataclass(frozen=True)
class RenameEntry:
    source: Path
    target: Path

    @property
    def is_noop(self) -> bool:
        return self.source == self.target


@dataclass
class RenamePlan:
    """Ordered (source, target) pairs, ascending by numeric suffix."""

    directory: Path
    extension: str
    entries: list[RenameEntry] = field(default_factory=list)
    dropped: list[Path] = field(default_factory=list)  # lost a suffix collision

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def pending(self) -> list[RenameEntry]:
        """Entries that actually move a file."""
        return [e for e in self.entries if not e.is_noop]


# =============================================================================
# COMMAND PARAMETERS
# =============================================================================

@dataclass
class CommandParams:
    """Encode parameters exactly as the user typed them.

    Values may be strings or ints; nothing is validated here. An empty
    quality string means the quality flag is not supplied.
    """

    framerate: Any
    width: Any
    quality: Any
    loop_count: Any
    input_pattern: str
    output_path: str


class CommandSpec(BaseModel):
    """Validated encode parameters."""

    model_config = ConfigDict(frozen=True)

    framerate: Annotated[int, Field(gt=0)]
    width: Annotated[int, Field(gt=0)]
    quality: Annotated[int | None, Field(ge=QUALITY_MIN, le=QUALITY_MAX)] = None
    loop_count: Annotated[int, Field(ge=0)]
    input_pattern: Annotated[str, Field(min_length=1)]
    output_path: Annotated[str, Field(min_length=1)]

    @field_validator("quality", mode="before")
    @classmethod
    def blank_quality_is_none(cls, v):
        """Treat an empty quality field as 'not supplied'."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @field_validator("framerate", "width", "quality", "loop_count", mode="before")
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


@dataclass(frozen=True)
class BuildResult:
    """Outcome of building a command: an argument vector or a list of errors."""

    argv: list[str] | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.argv is not None and not self.errors

    @property
    def command_line(self) -> str:
        """Shell-quoted rendering of argv for display; empty when invalid."""
        if self.argv is None:
            return ""
        return " ".join(shlex.quote(a) for a in self.argv)


# =============================================================================
# RUN RESULTS AND SHARED STATE
# =============================================================================

class RunOutcome(str, Enum):
    """Terminal state of one encoder execution."""

    SUCCESS = "success"
    FAILED = "failed"
    LAUNCH_FAILED = "launch_failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ResultSummary:
    outcome: RunOutcome
    message: str
    exit_code: int | None = None
    error_text: str = ""
    log_path: Path | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is RunOutcome.SUCCESS


@dataclass(frozen=True)
class RunSnapshot:
    """A consistent copy of RunState taken under its lock."""

    progress: float
    running: bool
    result_message: str


class RunState:
    """Progress shared between the runner thread (writer) and the UI (readers).

    Every field is guarded by one lock so `snapshot()` never mixes values
    from two different updates.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._progress = 0.0
        self._running = False
        self._result_message = ""

    @property
    def progress(self) -> float:
        with self._lock:
            return self._progress

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def result_message(self) -> str:
        with self._lock:
            return self._result_message

    def snapshot(self) -> RunSnapshot:
        with self._lock:
            return RunSnapshot(self._progress, self._running, self._result_message)

    def begin(self) -> bool:
        """Reset to {0, running, ""}; return False if a run is already active."""
        with self._lock:
            if self._running:
                return False
            self._progress = 0.0
            self._running = True
            self._result_message = ""
            return True

    def set_progress(self, value: float) -> None:
        with self._lock:
            self._progress = min(1.0, max(self._progress, value))

    def finish(self, message: str) -> None:
        with self._lock:
            self._running = False
            self._result_message = message
