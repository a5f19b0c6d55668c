"""
Tail view of encoder output for the Rich dashboard.

Lines arrive from the runner's worker thread and are rendered by the Live
display on the main thread, so all access goes through one lock.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, List, Optional

from rich.panel import Panel
from rich.text import Text

from ..processing.progress import is_error_line, parse_frame


class OutputTail:
    """Bounded history of output lines showing the most recent ones.

    Args:
        max_visible_lines: Number of lines shown in the panel
        max_history: Number of lines kept in memory
    """

    def __init__(self, max_visible_lines: int = 8, max_history: int = 2000) -> None:
        self.max_visible_lines = max_visible_lines
        self.lines: Deque[Text] = deque(maxlen=max_history)
        self.total_lines = 0
        self._lock = threading.Lock()

    def add_line(self, line: str, style: Optional[str] = None) -> None:
        """Append one line; error lines are red and stats lines dim unless `style` is given."""
        if style is None:
            if is_error_line(line):
                style = "bold red"
            elif parse_frame(line) is not None:
                style = "dim"
        with self._lock:
            self.lines.append(Text(line, style=style or ""))
            self.total_lines += 1

    def get_visible_lines(self) -> List[Text]:
        """The newest lines, padded with blanks to a stable height."""
        with self._lock:
            visible = list(self.lines)[-self.max_visible_lines:] if self.lines else []
        while len(visible) < self.max_visible_lines:
            visible.append(Text(""))
        return visible

    def get_panel(self, title: str = "ffmpeg output") -> Panel:
        combined = Text("\n").join(self.get_visible_lines())
        with self._lock:
            total = self.total_lines
        if total:
            title = f"{title} (last {min(total, self.max_visible_lines)} of {total})"
        return Panel(combined, title=f"[cyan]{title}[/]", border_style="cyan", title_align="left")
