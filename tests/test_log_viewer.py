"""
Test the output tail shown in the live dashboard.
"""

import threading

from seq2gif.output.log_viewer import OutputTail


def test_tail_shows_newest_lines_padded():
    tail = OutputTail(max_visible_lines=3, max_history=10)
    tail.add_line("line 1")
    visible = tail.get_visible_lines()
    assert len(visible) == 3
    assert visible[0].plain == "line 1"
    assert visible[1].plain == ""

    for i in range(2, 6):
        tail.add_line(f"line {i}")
    assert [t.plain for t in tail.get_visible_lines()] == ["line 3", "line 4", "line 5"]


def test_tail_respects_max_history():
    tail = OutputTail(max_visible_lines=2, max_history=5)
    for i in range(10):
        tail.add_line(f"Log {i}")
    assert len(tail.lines) == 5
    assert tail.lines[0].plain == "Log 5"
    assert tail.total_lines == 10


def test_error_and_stats_lines_are_styled():
    tail = OutputTail()
    tail.add_line("Error opening input file image_%03d.jpg")
    tail.add_line("frame=   12 fps=0.0")
    tail.add_line("Stream mapping:")
    styles = [str(t.style) for t in tail.lines]
    assert styles == ["bold red", "dim", ""]


def test_panel_title_counts_lines():
    tail = OutputTail(max_visible_lines=2)
    panel = tail.get_panel(title="ffmpeg output")
    assert "of" not in panel.title
    for i in range(5):
        tail.add_line(f"Entry {i}")
    panel = tail.get_panel(title="ffmpeg output")
    assert "(last 2 of 5)" in panel.title


def test_concurrent_writers():
    tail = OutputTail(max_history=1000)

    def writer(n: int) -> None:
        for i in range(100):
            tail.add_line(f"w{n} {i}")

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert tail.total_lines == 400
    assert len(tail.lines) == 400
