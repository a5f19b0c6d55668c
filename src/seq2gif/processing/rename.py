"""
Sequence normalization for seq2gif.

Scans a directory for images of one extension whose names end in a number,
orders them by that number and renames them to a zero-padded sequence
(`image_001.jpg`, `image_002.jpg`, ...) that ffmpeg's image2 demuxer can read
with a printf-style pattern.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path

from ..core.constants import RENAME_TEMP_PREFIX
from ..core.errors import RenameCollisionError, RenameFailedError
from ..core.types import ImageFile, RenameEntry, RenamePlan


def normalize_extension(extension: str) -> str:
    """Return the extension without its leading dot ("." + "jpg" -> "jpg")."""
    return extension.lstrip(".")


def extract_number(filename: str, extension: str) -> str | None:
    """Return the run of digits that ends the stem, leading zeros kept.

    Examples:
        "img007.jpg" -> "007"
        "a12.jpg" -> "12"
        "cover.jpg" -> None

    Args:
        filename: Bare file name, with extension.
        extension: Extension without the dot.

    Returns:
        The digit run, or None when the stem does not end in a digit.
    """
    suffix = f".{extension}"
    stem = filename[: -len(suffix)] if filename.endswith(suffix) else filename
    digits: list[str] = []
    for ch in reversed(stem):
        if not ("0" <= ch <= "9"):
            break
        digits.append(ch)
    if not digits:
        return None
    return "".join(reversed(digits))


def scan_images(directory: Path, extension: str) -> tuple[list[ImageFile], list[Path]]:
    """Collect numbered images of one extension from a directory.

    Files are visited in sorted name order so that when two files carry the
    same numeric value, the one whose name sorts last wins. Losers are
    returned separately.

    Returns:
        (images sorted by numeric suffix, files dropped on a suffix collision)
    """
    ext = normalize_extension(extension)
    by_number: dict[int, ImageFile] = {}
    dropped: list[Path] = []

    with os.scandir(directory) as it:
        listing = sorted(it, key=lambda e: e.name)

    for entry in listing:
        if not entry.is_file() or Path(entry.name).suffix != f".{ext}":
            continue
        number_text = extract_number(entry.name, ext)
        if number_text is None:
            continue
        image = ImageFile(path=directory / entry.name, number_text=number_text)
        previous = by_number.get(image.number)
        if previous is not None:
            dropped.append(previous.path)
        by_number[image.number] = image

    images = [by_number[n] for n in sorted(by_number)]
    return images, dropped


def target_name(counter: int, extension: str, pad_width: int, prefix: str = "image_") -> str:
    """Canonical name for the n-th frame: image_001.jpg for (1, "jpg", 3)."""
    return f"{prefix}{counter:0{pad_width}d}.{normalize_extension(extension)}"


def build_rename_plan(directory: Path, extension: str, pad_width: int = 3, prefix: str = "image_") -> RenamePlan:
    """Compute the rename plan for a directory without touching the disk."""
    directory = Path(directory)
    ext = normalize_extension(extension)
    images, dropped = scan_images(directory, ext)
    entries = [
        RenameEntry(source=img.path, target=directory / target_name(i, ext, pad_width, prefix))
        for i, img in enumerate(images, start=1)
    ]
    return RenamePlan(directory=directory, extension=ext, entries=entries, dropped=dropped)


def check_plan(plan: RenamePlan) -> None:
    """Reject the plan if a target is occupied by a file the plan does not move.

    Raises:
        RenameCollisionError: naming the first offending pair.
    """
    sources = {e.source for e in plan.entries}
    for entry in plan.pending:
        if entry.target.exists() and entry.target not in sources:
            raise RenameCollisionError(entry.source, entry.target)


def apply_rename_plan(plan: RenamePlan) -> list[RenameEntry]:
    """Apply a plan as one batch.

    Sources are first moved to unique temporary names and then to their
    targets, so plans whose targets overlap their own sources are safe. If any
    move fails, every completed move is undone before the error propagates.

    Returns:
        The entries that moved a file, in plan order.

    Raises:
        RenameCollisionError: a target is occupied by an unrelated file.
        RenameFailedError: the filesystem refused a move.
    """
    check_plan(plan)
    pending = plan.pending
    tag = uuid.uuid4().hex[:8]
    done: list[tuple[Path, Path]] = []

    staged: list[tuple[RenameEntry, Path]] = []
    for i, entry in enumerate(pending):
        temp = entry.source.with_name(f"{RENAME_TEMP_PREFIX}{tag}-{i}{entry.source.suffix}")
        staged.append((entry, temp))

    try:
        for entry, temp in staged:
            _move(entry.source, temp, entry, done)
        for entry, temp in staged:
            _move(temp, entry.target, entry, done)
    except RenameFailedError:
        _rollback(done)
        raise
    return pending


def normalize_sequence(
    directory: Path,
    extension: str,
    pad_width: int = 3,
    prefix: str = "image_",
    dry_run: bool = False,
) -> RenamePlan:
    """Scan, plan and (unless dry_run) rename a directory's image sequence."""
    plan = build_rename_plan(directory, extension, pad_width, prefix)
    if dry_run:
        check_plan(plan)
    else:
        apply_rename_plan(plan)
    return plan


def _move(src: Path, dst: Path, entry: RenameEntry, done: list[tuple[Path, Path]]) -> None:
    try:
        os.rename(src, dst)
    except OSError as ex:
        raise RenameFailedError(entry.source, entry.target, ex) from ex
    done.append((src, dst))


def _rollback(done: list[tuple[Path, Path]]) -> None:
    # Undo in reverse order; a failed undo leaves the file under its staged name.
    for src, dst in reversed(done):
        try:
            os.rename(dst, src)
        except OSError:
            continue
