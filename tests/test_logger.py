import io
from pathlib import Path

import pytest
from rich.console import Console

from seq2gif.output.logger import SimpleLogger


def make_logger(log_file: Path | None = None) -> tuple[SimpleLogger, io.StringIO, io.StringIO]:
    out, err = io.StringIO(), io.StringIO()
    logger = SimpleLogger(
        log_file=log_file,
        console=Console(file=out, force_terminal=False, width=200),
        err_console=Console(file=err, force_terminal=False, width=200),
    )
    return logger, out, err


def test_levels_are_prefixed():
    logger, out, err = make_logger()
    logger.info("scanning")
    logger.success("3 files renamed")
    logger.warning("Skipped a007.jpg")
    logger.error("Missing: ffmpeg not found in PATH")
    lines = out.getvalue().splitlines()
    assert lines[0].endswith("[INFO] scanning")
    assert lines[1].endswith("[SUCCESS] 3 files renamed")
    assert lines[2].endswith("[WARNING] Skipped a007.jpg")
    assert len(lines) == 3
    assert err.getvalue().strip().endswith("[ERROR] Missing: ffmpeg not found in PATH")


def test_errors_go_to_stderr_with_custom_stdout_console(capsys: pytest.CaptureFixture[str]):
    logger = SimpleLogger(console=Console(highlight=False))
    logger.info("working")
    logger.error("boom")
    captured = capsys.readouterr()
    assert "[INFO] working" in captured.out
    assert "boom" not in captured.out
    assert "[ERROR] boom" in captured.err


def test_markup_in_messages_is_printed_literally():
    logger, out, _ = make_logger()
    logger.log("[gif @ 0x5] [bold]not markup[/bold]")
    assert "[gif @ 0x5] [bold]not markup[/bold]" in out.getvalue()


def test_file_log_has_session_header(tmp_path: Path):
    log_file = tmp_path / "logs" / "session.log"
    logger, _, _ = make_logger(log_file)
    logger.info("First entry")
    logger.section("Encode")
    content = log_file.read_text()
    assert "Session started:" in content
    assert "[INFO] First entry" in content
    assert "Encode" in content
