"""
Encoder process driver for seq2gif.

Runs one ffmpeg invocation at a time in a background worker, reads its merged
stdout/stderr line by line, mirrors every line to a per-run log file, turns
progress markers into a smoothly advancing progress value and finishes with a
ResultSummary.
"""

from __future__ import annotations

import concurrent.futures as futures
import subprocess
import threading
import time
import traceback
from collections.abc import Callable, Iterable, Iterator, Sequence
from pathlib import Path
from typing import IO

from ..config import RunnerSettings
from ..core.constants import (
    CANCELLED_MESSAGE,
    FAILURE_PREFIX,
    LAUNCH_FAILED_MESSAGE,
    LOG_FILE_FAILED_MESSAGE,
    SUCCESS_MESSAGE,
)
from ..core.errors import CommandValidationError, LaunchError, RunnerBusyError
from ..core.types import CommandParams, ResultSummary, RunOutcome, RunSnapshot, RunState
from ..output.logger import SimpleLogger
from .ffmpeg import FFmpegCommandBuilder
from .progress import ProgressStrategy, ProgressTracker, smooth_steps

UpdateCallback = Callable[[RunSnapshot], None]
LineCallback = Callable[[str], None]


def iter_output_lines(stream: IO[str]) -> Iterator[str]:
    """Yield lines from a text stream, treating "\\r" as a line terminator too.

    ffmpeg redraws its stats line with carriage returns. Pipes opened in text
    mode already translate them; other streams may not. Empty lines are
    skipped and line terminators are stripped.
    """
    for raw in stream:
        for part in raw.replace("\r\n", "\n").split("\r"):
            part = part.rstrip("\n")
            if part:
                yield part


class CommandRunner:
    """Single-slot encoder driver.

    Args:
        settings: Smoothing, log file and duration configuration.
        state: Shared RunState; a fresh one is created when omitted.
        on_update: Called with a snapshot after every progress step and at
            the end of the run.
        on_line: Called with every raw output line.
        logger: Receives the traceback when a run crashes.
    """

    def __init__(
        self,
        settings: RunnerSettings | None = None,
        state: RunState | None = None,
        on_update: UpdateCallback | None = None,
        on_line: LineCallback | None = None,
        logger: SimpleLogger | None = None,
    ) -> None:
        self.settings = settings or RunnerSettings()
        self.state = state or RunState()
        self.on_update = on_update
        self.on_line = on_line
        self.logger = logger
        self._cancel = threading.Event()
        self._proc_lock = threading.Lock()
        self._proc: subprocess.Popen[str] | None = None
        self._executor = futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="seq2gif-runner")

    # ------------------------------
    # Public API
    # ------------------------------

    @property
    def log_path(self) -> Path | None:
        return Path(self.settings.log_file) if self.settings.log_file else None

    def execute(self, params: CommandParams, strategy: ProgressStrategy) -> futures.Future[ResultSummary]:
        """Validate `params`, then start the encode in the background.

        Raises:
            CommandValidationError: no process is started.
            RunnerBusyError: another run is still active.
        """
        result = FFmpegCommandBuilder.build(params)
        if not result.ok:
            raise CommandValidationError(result.errors)
        return self.start(result.argv, strategy)

    def start(self, argv: Sequence[str], strategy: ProgressStrategy) -> futures.Future[ResultSummary]:
        """Launch `argv` on the worker thread and return a future for its summary."""
        if not self.state.begin():
            raise RunnerBusyError("an encode is already running")
        self._cancel.clear()
        return self._executor.submit(self._run_started, list(argv), strategy)

    def run(self, argv: Sequence[str], strategy: ProgressStrategy) -> ResultSummary:
        """Blocking form of start()."""
        return self.start(argv, strategy).result()

    def cancel(self) -> None:
        """Request cancellation; the child process is terminated if alive."""
        self._cancel.set()
        with self._proc_lock:
            proc = self._proc
        if proc is not None and proc.poll() is None:
            proc.terminate()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def shutdown(self) -> None:
        self.cancel()
        self._executor.shutdown(wait=True)

    # ------------------------------
    # Worker
    # ------------------------------

    def _run_started(self, argv: list[str], strategy: ProgressStrategy) -> ResultSummary:
        try:
            summary = self._drive(argv, strategy)
        except LaunchError as ex:
            summary = ResultSummary(
                RunOutcome.LAUNCH_FAILED, ex.message, error_text=ex.detail, log_path=self.log_path
            )
        except Exception as ex:
            detail = traceback.format_exc()
            if self.logger is not None:
                self.logger.error(f"Encoder run crashed:\n{detail}")
            summary = ResultSummary(
                RunOutcome.FAILED, f"{FAILURE_PREFIX}{type(ex).__name__}: {ex}",
                error_text=detail, log_path=self.log_path,
            )
        self.state.finish(summary.message)
        self._notify()
        return summary

    def _drive(self, argv: list[str], strategy: ProgressStrategy) -> ResultSummary:
        log_path = self.log_path
        log_fh: IO[str] | None = None
        if log_path is not None:
            try:
                log_path.parent.mkdir(parents=True, exist_ok=True)
                log_fh = open(log_path, "w", encoding="utf-8")
            except OSError as ex:
                raise LaunchError(LOG_FILE_FAILED_MESSAGE, str(ex)) from ex

        try:
            try:
                proc = subprocess.Popen(
                    argv,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    stdin=subprocess.DEVNULL,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                )
            except OSError as ex:
                raise LaunchError(LAUNCH_FAILED_MESSAGE, str(ex)) from ex

            with self._proc_lock:
                self._proc = proc
            if self._cancel.is_set():
                proc.terminate()

            tracker = ProgressTracker(strategy)
            try:
                assert proc.stdout is not None
                self._consume(iter_output_lines(proc.stdout), tracker, log_fh)
            finally:
                proc.stdout.close()
                exit_code = proc.wait()
                with self._proc_lock:
                    self._proc = None
        finally:
            if log_fh is not None:
                log_fh.close()

        return self._summarize(tracker, exit_code, log_path)

    def _consume(self, lines: Iterable[str], tracker: ProgressTracker, log_fh: IO[str] | None) -> None:
        settings = self.settings
        for line in lines:
            if log_fh is not None:
                log_fh.write(line + "\n")
                log_fh.flush()
            if self.on_line is not None:
                self.on_line(line)

            target = tracker.feed(line)
            for value in smooth_steps(self.state.progress, target, settings.smooth_step):
                if self._cancel.is_set():
                    break
                self.state.set_progress(value)
                self._notify()
                if settings.smooth_delay > 0:
                    time.sleep(settings.smooth_delay)

    def _summarize(self, tracker: ProgressTracker, exit_code: int, log_path: Path | None) -> ResultSummary:
        if self._cancel.is_set():
            return ResultSummary(
                RunOutcome.CANCELLED, CANCELLED_MESSAGE, exit_code=exit_code,
                error_text=tracker.error_text, log_path=log_path,
            )
        if tracker.has_errors:
            return ResultSummary(
                RunOutcome.FAILED, FAILURE_PREFIX + tracker.error_text, exit_code=exit_code,
                error_text=tracker.error_text, log_path=log_path,
            )
        if exit_code != 0:
            text = f"ffmpeg exited with code {exit_code}"
            return ResultSummary(
                RunOutcome.FAILED, FAILURE_PREFIX + text, exit_code=exit_code,
                error_text=text, log_path=log_path,
            )
        return ResultSummary(RunOutcome.SUCCESS, SUCCESS_MESSAGE, exit_code=exit_code, log_path=log_path)

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update(self.state.snapshot())
