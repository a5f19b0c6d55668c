"""
Console and file logging for seq2gif.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape

LEVEL_STYLES = {
    "INFO": "cyan",
    "SUCCESS": "green",
    "WARNING": "yellow",
    "ERROR": "bold red",
}


class SimpleLogger:
    """Timestamped logger writing to a Rich console and, optionally, a file.

    Args:
        log_file: Append-only session log; created with its parent directory.
        console: Console for regular messages.
        err_console: Console for errors; stderr unless given.
    """

    def __init__(
        self,
        log_file: Path | None = None,
        console: Console | None = None,
        err_console: Console | None = None,
    ) -> None:
        self.log_file = log_file
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(f"\n{'=' * 60}\n")
                f.write(f"Session started: {datetime.now().isoformat()}\n")
                f.write(f"{'=' * 60}\n")

    def log(self, message: str, level: str = "", error: bool = False) -> None:
        """Log a message to console and file.

        Args:
            message: Plain text; Rich markup in it is not interpreted.
            level: Optional level name such as INFO or ERROR.
            error: Whether to write to stderr instead of stdout.
        """
        timestamp = datetime.now().strftime("%H:%M:%S")
        prefix = f"[{level}] " if level else ""
        plain = f"[{timestamp}] {prefix}{message}"

        style = LEVEL_STYLES.get(level)
        tag = f"[{style}]{escape(prefix)}[/]" if style else escape(prefix)
        output = self.err_console if error else self.console
        output.print(f"[dim]{escape(f'[{timestamp}]')}[/] {tag}{escape(message)}")

        if self.log_file:
            try:
                with open(self.log_file, "a", encoding="utf-8") as f:
                    f.write(plain + "\n")
            except OSError:
                pass  # Don't fail on logging errors

    def section(self, title: str) -> None:
        self.console.rule(f"[bold cyan]{escape(title)}[/]")
        if self.log_file:
            self.log(title)

    def success(self, message: str) -> None:
        self.log(message, level="SUCCESS")

    def error(self, message: str) -> None:
        self.log(message, level="ERROR", error=True)

    def warning(self, message: str) -> None:
        self.log(message, level="WARNING")

    def info(self, message: str) -> None:
        self.log(message, level="INFO")
