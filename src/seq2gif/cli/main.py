#!/usr/bin/env python3
"""
seq2gif: Turn a directory of numbered images into an animated GIF with ffmpeg.

Flow of one invocation:
- Normalize the sequence on disk (image_001.jpg, image_002.jpg, ...)
- Validate the encode parameters and build the ffmpeg command
- Run ffmpeg in the background while a live dashboard shows its progress
- Print a success/failure summary
"""

from __future__ import annotations

# Standard library imports
import argparse
import sys
import threading
from collections.abc import Sequence
from pathlib import Path

# Third-party imports
from pydantic import ValidationError
from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

# Local application imports
from ..config import AppConfig, EncodeSettings, RenameSettings, RunnerSettings, create_config_from_env
from ..core.errors import RenameError, RunnerBusyError
from ..core.types import (
    BuildResult,
    CommandParams,
    CommandSpec,
    RenamePlan,
    ResultSummary,
    RunOutcome,
    RunSnapshot,
)
from ..output.log_viewer import OutputTail
from ..output.logger import SimpleLogger
from ..processing.ffmpeg import FFmpegCommandBuilder
from ..processing.progress import ElapsedTimeStrategy, FrameCountStrategy, ProgressStrategy
from ..processing.rename import normalize_sequence, scan_images
from ..processing.runner import CommandRunner
from ..tools.check import check_tools
from ..utils.subprocess import estimate_sequence_duration, probe_duration

EXIT_OK = 0
EXIT_RUN_FAILED = 1
EXIT_INVALID_PARAMS = 2
EXIT_RENAME_FAILED = 3
EXIT_MISSING_TOOLS = 4

PROGRESS_LOG_EVERY = 0.1

OVERRIDE_FLAGS = {
    "pad_width": "--pad-width",
    "extension": "--extension",
    "log_file": "--log-file",
    "strategy": "--strategy",
}


def parse_args(argv: Sequence[str] | None = None, config: AppConfig | None = None) -> argparse.Namespace:
    """Parse CLI arguments; defaults come from the (environment-aware) config.

    Numeric encode parameters are read as text so that every invalid field is
    reported together by the command builder.
    """
    cfg = config or create_config_from_env()
    enc = cfg.encode
    p = argparse.ArgumentParser(
        prog="seq2gif",
        description="Normalize a numbered image sequence and encode it to GIF with ffmpeg.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("-d", "--directory", type=Path, default=Path("."), help="Directory holding the images")
    p.add_argument("-o", "--output", default=enc.output_path, help="Output file")
    p.add_argument("-r", "--framerate", default=str(enc.framerate), help="Input framerate (positive integer)")
    p.add_argument("-w", "--width", default=str(enc.width), help="Output width in pixels (positive integer)")
    p.add_argument(
        "-q", "--quality",
        default="" if enc.quality is None else str(enc.quality),
        help="Optional -q:v value, 1-31 (lower is better); empty to omit",
    )
    p.add_argument("-l", "--loop", default=str(enc.loop_count), help="Loop count (0 = infinite)")
    p.add_argument("-e", "--extension", default=enc.extension, help="Extension of the source images")
    p.add_argument("--pattern", default=None, help="Input pattern override (printf-style, e.g. frames/img_%%04d.png)")
    p.add_argument("--pad-width", type=int, default=cfg.rename.pad_width, help="Zero-padding width of renamed frames")
    p.add_argument("--no-rename", dest="rename", action="store_false", default=True, help="Skip sequence normalization")
    p.add_argument("--dry-run", action="store_true", help="Show the rename plan and command without changing anything")
    p.add_argument(
        "--strategy", choices=["frames", "time"], default=cfg.runner.strategy, help="Progress extraction strategy"
    )
    p.add_argument("--duration", type=float, default=None, help="Total duration in seconds for --strategy time")
    p.add_argument(
        "--probe-duration", action="store_true",
        help="Probe the total duration with ffprobe for --strategy time (falls back to frames / framerate)",
    )
    log_group = p.add_mutually_exclusive_group()
    log_group.add_argument("--log-file", default=cfg.runner.log_file, help="Raw ffmpeg output log, truncated per run")
    log_group.add_argument("--no-log-file", dest="log_file", action="store_const", const=None, help="Disable the log")
    p.add_argument("--session-log", type=Path, default=None, help="Append this session's messages to a file")
    p.add_argument("--print-command", action="store_true", help="Print the ffmpeg command and exit")
    p.add_argument("--plain", action="store_true", help="Plain line output instead of the live dashboard")
    p.add_argument("-v", "--verbose", action="store_true", help="Echo ffmpeg output in plain mode")
    p.add_argument("--check-tools", action="store_true", help="Verify external tools and exit")
    return p.parse_args(argv)


def build_config(args: argparse.Namespace, base: AppConfig | None = None) -> AppConfig:
    """Apply CLI overrides on top of the environment configuration.

    Each section is re-validated, so overrides obey the same bounds as the
    environment.

    Raises:
        pydantic.ValidationError: an override is out of range.
    """
    cfg = base or create_config_from_env()
    rename = RenameSettings.model_validate({**cfg.rename.model_dump(), "pad_width": args.pad_width})
    runner = RunnerSettings.model_validate(
        {**cfg.runner.model_dump(), "log_file": args.log_file, "strategy": args.strategy}
    )
    encode = EncodeSettings.model_validate({**cfg.encode.model_dump(), "extension": args.extension})
    return cfg.model_copy(update={"rename": rename, "runner": runner, "encode": encode})


def override_errors(ex: ValidationError) -> list[str]:
    """One readable message per rejected CLI override."""
    messages = []
    for err in ex.errors():
        field = str(err["loc"][0]) if err["loc"] else ""
        messages.append(f"{OVERRIDE_FLAGS.get(field, field)}: {err['msg']}")
    return messages


def build_params(args: argparse.Namespace, config: AppConfig) -> CommandParams:
    """Collect the raw encode parameters from parsed args."""
    pattern = args.pattern or config.input_pattern(str(args.directory))
    return CommandParams(
        framerate=args.framerate,
        width=args.width,
        quality=args.quality,
        loop_count=args.loop,
        input_pattern=pattern,
        output_path=args.output,
    )


def pick_strategy(args: argparse.Namespace, config: AppConfig, spec: CommandSpec, frame_count: int) -> ProgressStrategy:
    """Choose the progress strategy and, for the time strategy, its total duration."""
    if args.strategy == "frames":
        return FrameCountStrategy(frame_count)
    total = args.duration
    if total is None and args.probe_duration:
        total = probe_duration(spec.input_pattern) or estimate_sequence_duration(frame_count, spec.framerate)
    if total is None or total <= 0:
        total = config.runner.assumed_duration_sec
    return ElapsedTimeStrategy(total)


# ------------------------------
# Rendering
# ------------------------------


def render_errors(errors: list[str]) -> Panel:
    body = Text("Error:", style="bold red")
    for err in errors:
        body.append(f"\n  • {err}", style="red")
    return Panel(body, title="[red]Invalid parameters[/]", border_style="red", title_align="left")


def render_command(result: BuildResult) -> Panel:
    return Panel(Text(result.command_line), title="[cyan]FFmpeg command[/]", border_style="cyan", title_align="left")


def render_params(args: argparse.Namespace, frame_count: int) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="dim")
    table.add_column()
    rows = [
        ("Directory:", str(args.directory)),
        ("Output:", args.output),
        ("Framerate:", f"{args.framerate} fps"),
        ("Width:", f"{args.width} px"),
        ("Quality:", args.quality or "(default)"),
        ("Loop:", "infinite" if str(args.loop).strip() == "0" else str(args.loop)),
        ("Extension:", args.extension),
        ("Frames:", str(frame_count)),
    ]
    for label, value in rows:
        table.add_row(label, escape(value))
    return table


def render_result(summary: ResultSummary) -> Panel:
    style = "green" if summary.ok else "red"
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="dim")
    table.add_column()
    table.add_row("Result:", Text(summary.message, style=style))
    table.add_row("Exit code:", "-" if summary.exit_code is None else str(summary.exit_code))
    if summary.outcome is RunOutcome.LAUNCH_FAILED and summary.error_text:
        table.add_row("Detail:", Text(summary.error_text, style="dim"))
    if summary.log_path is not None:
        table.add_row("Log:", escape(str(summary.log_path)))
    return Panel(table, title=f"[bold {style}]Summary[/]", border_style=style, title_align="left")


class Dashboard:
    """Live renderable combining parameters, command, progress and output tail."""

    def __init__(self, header: Table, command: Panel, runner: CommandRunner, tail: OutputTail) -> None:
        self.header = header
        self.command = command
        self.runner = runner
        self.tail = tail

    def __rich__(self) -> Group:
        snap = self.runner.state.snapshot()
        bar = Table.grid(expand=True, padding=(0, 1))
        bar.add_column(width=10)
        bar.add_column(ratio=1)
        bar.add_column(width=6, justify="right")
        state = "[yellow]cancelling[/]" if self.runner.cancelled and snap.running else (
            "running" if snap.running else "done"
        )
        bar.add_row(state, ProgressBar(total=1.0, completed=snap.progress), f"{snap.progress * 100:.0f}%")
        controls = Text("Controls: 'q' + Enter cancel | Ctrl+C cancel", style="dim")
        return Group(
            Panel(self.header, title="[cyan]Parameters[/]", border_style="cyan", title_align="left"),
            self.command,
            Panel(Group(bar, controls), title="[cyan]Progress[/]", border_style="cyan", title_align="left"),
            self.tail.get_panel(),
        )


# ------------------------------
# Execution
# ------------------------------


def start_controls_listener(runner: CommandRunner, stop_event: threading.Event) -> threading.Thread:
    """Start a background thread that cancels the run on 'q' + Enter.

    Returns:
        Thread: The daemon thread handling input.
    """

    def _reader() -> None:
        if not sys.stdin or not sys.stdin.isatty():
            return
        while not stop_event.is_set():
            line = sys.stdin.readline()
            if not line:
                break
            if line.strip().lower() == "q":
                runner.cancel()
                break

    t = threading.Thread(target=_reader, name="controls-listener", daemon=True)
    t.start()
    return t


def wait_for(runner: CommandRunner, argv: list[str], strategy: ProgressStrategy) -> ResultSummary:
    """Start the run and block until it ends; Ctrl+C cancels instead of aborting."""
    future = runner.start(argv, strategy)
    stop_ev = threading.Event()
    start_controls_listener(runner, stop_ev)
    try:
        while True:
            try:
                return future.result()
            except KeyboardInterrupt:
                runner.cancel()
    finally:
        stop_ev.set()


def run_live(
    console: Console, runner: CommandRunner, tail: OutputTail, dashboard: Dashboard,
    argv: list[str], strategy: ProgressStrategy,
) -> ResultSummary:
    runner.on_line = tail.add_line
    with Live(dashboard, console=console, refresh_per_second=10, transient=False):
        return wait_for(runner, argv, strategy)


def run_plain(
    logger: SimpleLogger, runner: CommandRunner, argv: list[str], strategy: ProgressStrategy, verbose: bool
) -> ResultSummary:
    reported = [-1]

    def on_update(snap: RunSnapshot) -> None:
        bucket = int(snap.progress / PROGRESS_LOG_EVERY)
        if snap.running and bucket > reported[0]:
            reported[0] = bucket
            logger.info(f"Progress: {snap.progress * 100:.0f}%")

    logger.section("Encode")
    logger.info(f"Tracking progress by {strategy.name}")
    runner.on_update = on_update
    if verbose:
        runner.on_line = lambda line: logger.log(line)
    return wait_for(runner, argv, strategy)


def log_rename_plan(logger: SimpleLogger, plan: RenamePlan, dry_run: bool) -> None:
    verb = "Would rename" if dry_run else "Renamed"
    moved = plan.pending
    for entry in moved:
        logger.log(f"{verb}: {entry.source.name} -> {entry.target.name}")
    for path in plan.dropped:
        logger.warning(f"Skipped {path.name}: another file has the same number")
    if not plan.entries:
        logger.warning(f"No numbered .{plan.extension} files found in {plan.directory}")
    elif not moved:
        logger.info(f"{len(plan)} files already normalized")
    else:
        logger.success(f"{len(moved)}/{len(plan)} files {'to rename' if dry_run else 'renamed'}")


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    base = create_config_from_env()
    args = parse_args(argv, base)
    console = Console(highlight=False)
    logger = SimpleLogger(log_file=args.session_log, console=console)

    if args.check_tools:
        ok, probs = check_tools(require_ffprobe=True)
        if ok:
            console.print("Tools OK: ffmpeg, ffprobe")
            return EXIT_OK
        for p in probs:
            logger.error(f"Missing: {p}")
        return EXIT_MISSING_TOOLS

    try:
        config = build_config(args, base)
    except ValidationError as ex:
        console.print(render_errors(override_errors(ex)))
        return EXIT_INVALID_PARAMS
    directory: Path = args.directory
    if not directory.is_dir():
        logger.error(f"Not a directory: {directory}")
        return EXIT_RENAME_FAILED

    ext = config.encode.extension
    if args.rename:
        logger.section(f"Normalize {directory}")
        try:
            plan = normalize_sequence(
                directory, ext, config.rename.pad_width, config.rename.prefix, dry_run=args.dry_run
            )
        except RenameError as ex:
            logger.error(f"Rename aborted, no files were changed: {ex}")
            return EXIT_RENAME_FAILED
        log_rename_plan(logger, plan, args.dry_run)
        frame_count = len(plan)
    else:
        frame_count = len(scan_images(directory, ext)[0])

    params = build_params(args, config)
    spec, errors = FFmpegCommandBuilder.validate(params)
    if spec is None:
        console.print(render_errors(errors))
        return EXIT_INVALID_PARAMS
    result = BuildResult(argv=FFmpegCommandBuilder.build_gif_cmd(spec))

    if args.print_command:
        console.print(result.command_line, markup=False, highlight=False, soft_wrap=True)
        return EXIT_OK
    live = console.is_terminal and not args.plain
    if args.dry_run or not live:
        console.print(render_command(result))
    if args.dry_run:
        return EXIT_OK

    tools_ok, probs = check_tools()
    if not tools_ok:
        for p in probs:
            logger.error(f"Missing: {p}")
        return EXIT_MISSING_TOOLS
    if args.probe_duration and not check_tools(require_ffprobe=True)[0]:
        logger.warning("ffprobe not found in PATH; estimating the duration from the frame count")

    strategy = pick_strategy(args, config, spec, frame_count)
    runner = CommandRunner(config.runner, logger=logger)
    try:
        if live:
            tail = OutputTail()
            dashboard = Dashboard(render_params(args, frame_count), render_command(result), runner, tail)
            summary = run_live(console, runner, tail, dashboard, result.argv, strategy)
        else:
            summary = run_plain(logger, runner, result.argv, strategy, args.verbose)
    except RunnerBusyError as ex:
        logger.error(str(ex))
        return EXIT_RUN_FAILED
    finally:
        runner.shutdown()

    console.print(render_result(summary))
    return EXIT_OK if summary.ok else EXIT_RUN_FAILED


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
