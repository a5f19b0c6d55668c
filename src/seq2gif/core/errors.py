"""Error taxonomy for seq2gif."""

from __future__ import annotations

from pathlib import Path


class Seq2GifError(Exception):
    """Base class for all errors raised by seq2gif."""


class CommandValidationError(Seq2GifError):
    """One or more encode parameters are out of range.

    Args:
        errors: Human-readable messages, one per failing field, in field order.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class LaunchError(Seq2GifError):
    """The encoder process could not be started.

    Args:
        message: Fixed user-facing message.
        detail: Underlying OS error text, if any.
    """

    def __init__(self, message: str, detail: str = "") -> None:
        self.message = message
        self.detail = detail
        super().__init__(f"{message}: {detail}" if detail else message)


class RunnerBusyError(Seq2GifError):
    """An execution was requested while another one is still running."""


class RenameError(Seq2GifError):
    """Base class for sequence normalization failures."""


class RenameCollisionError(RenameError):
    """A rename target is occupied by a file that is not part of the plan."""

    def __init__(self, source: Path, target: Path) -> None:
        self.source = source
        self.target = target
        super().__init__(f"cannot rename {source.name} -> {target.name}: target already exists")


class RenameFailedError(RenameError):
    """A rename failed mid-batch; completed moves were rolled back."""

    def __init__(self, source: Path, target: Path, cause: OSError) -> None:
        self.source = source
        self.target = target
        self.cause = cause
        super().__init__(f"rename {source.name} -> {target.name} failed: {cause}")
