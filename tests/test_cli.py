import sys
from pathlib import Path

import pytest

from seq2gif.cli import main as cli
from seq2gif.processing.ffmpeg import FFmpegCommandBuilder


def make_frames(folder: Path, names: list[str]) -> None:
    for name in names:
        (folder / name).write_text(name)


@pytest.fixture(autouse=True)
def fast_progress(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SEQ2GIF_RUNNER__SMOOTH_DELAY", "0")


def test_dry_run_prints_plan_and_keeps_files(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    make_frames(tmp_path, ["a5.jpg", "a12.jpg", "a1.jpg"])
    code = cli.main(["-d", str(tmp_path), "--dry-run", "--plain"])
    out = capsys.readouterr().out
    assert code == cli.EXIT_OK
    assert "Would rename: a1.jpg -> image_001.jpg" in out
    assert "Would rename: a12.jpg -> image_003.jpg" in out
    assert sorted(p.name for p in tmp_path.iterdir()) == ["a1.jpg", "a12.jpg", "a5.jpg"]


def test_print_command_renames_and_prints_argv(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    make_frames(tmp_path, ["b2.png", "b1.png"])
    code = cli.main(["-d", str(tmp_path), "-e", "png", "-q", "15", "-o", "anim.gif", "--print-command"])
    out = capsys.readouterr().out
    assert code == cli.EXIT_OK
    assert (tmp_path / "image_001.png").read_text() == "b1.png"
    assert "-q:v 15" in out
    assert "scale=320:-1" in out
    assert out.strip().endswith("-y anim.gif")


def test_invalid_parameters_block_execution(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    code = cli.main(["-d", str(tmp_path), "--no-rename", "-r", "0", "-q", "32", "--plain"])
    out = capsys.readouterr().out
    assert code == cli.EXIT_INVALID_PARAMS
    assert "framerate must be a positive integer" in out
    assert "between 1 and 31" in out


def test_rename_collision_aborts(tmp_path: Path):
    make_frames(tmp_path, ["c1.jpg", "c2.jpg"])
    (tmp_path / "image_001.jpg").mkdir()
    code = cli.main(["-d", str(tmp_path), "--print-command"])
    assert code == cli.EXIT_RENAME_FAILED
    assert (tmp_path / "c1.jpg").exists()


def test_missing_directory(tmp_path: Path):
    assert cli.main(["-d", str(tmp_path / "nope"), "--print-command"]) == cli.EXIT_RENAME_FAILED


def test_full_run_with_fake_encoder(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]):
    make_frames(tmp_path, ["d1.jpg", "d2.jpg"])
    fake = [sys.executable, "-c", "import sys; sys.stderr.write('frame=1\\nframe=2\\n')"]
    monkeypatch.setattr(cli, "check_tools", lambda require_ffprobe=False: (True, []))
    monkeypatch.setattr(FFmpegCommandBuilder, "build_gif_cmd", staticmethod(lambda spec: fake))

    log = tmp_path / "run.log"
    code = cli.main(["-d", str(tmp_path), "--plain", "--log-file", str(log)])
    out = capsys.readouterr().out
    assert code == cli.EXIT_OK
    assert "Success: GIF generated!" in out
    assert log.read_text().splitlines() == ["frame=1", "frame=2"]


def test_time_strategy_duration_choice():
    config = cli.build_config(cli.parse_args(["--strategy", "time"]))
    args = cli.parse_args(["--strategy", "time"])
    spec, _ = FFmpegCommandBuilder.validate(cli.build_params(args, config))
    assert cli.pick_strategy(args, config, spec, 50).total_seconds == 600.0

    args = cli.parse_args(["--strategy", "time", "--duration", "12.5"])
    assert cli.pick_strategy(args, config, spec, 50).total_seconds == 12.5


def test_probe_falls_back_to_frame_count(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(cli, "probe_duration", lambda path: None)
    args = cli.parse_args(["--strategy", "time", "--probe-duration", "-r", "10"])
    config = cli.build_config(args)
    spec, _ = FFmpegCommandBuilder.validate(cli.build_params(args, config))
    assert cli.pick_strategy(args, config, spec, 50).total_seconds == 5.0


@pytest.mark.parametrize("pad_width", ["0", "-1", "11"])
def test_out_of_range_pad_width_is_rejected_before_renaming(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], pad_width: str
):
    make_frames(tmp_path, ["a2.jpg", "a1.jpg"])
    code = cli.main(["-d", str(tmp_path), "--pad-width", pad_width, "--print-command"])
    out = capsys.readouterr().out
    assert code == cli.EXIT_INVALID_PARAMS
    assert "--pad-width" in out
    assert sorted(p.name for p in tmp_path.iterdir()) == ["a1.jpg", "a2.jpg"]


def test_extension_override_accepts_leading_dot(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    make_frames(tmp_path, ["f1.png"])
    code = cli.main(["-d", str(tmp_path), "-e", ".png", "--print-command"])
    out = capsys.readouterr().out
    assert code == cli.EXIT_OK
    assert (tmp_path / "image_001.png").exists()
    assert "image_%03d.png" in out


def test_empty_extension_is_rejected(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    code = cli.main(["-d", str(tmp_path), "-e", ".", "--print-command"])
    assert code == cli.EXIT_INVALID_PARAMS
    assert "--extension" in capsys.readouterr().out


def test_session_log_records_messages(tmp_path: Path):
    frames = tmp_path / "frames"
    frames.mkdir()
    make_frames(frames, ["a2.jpg", "a1.jpg"])
    session = tmp_path / "logs" / "seq2gif.log"
    code = cli.main(["-d", str(frames), "--session-log", str(session), "--print-command"])
    assert code == cli.EXIT_OK
    content = session.read_text()
    assert "Session started:" in content
    assert f"Normalize {frames}" in content
    assert "Renamed: a1.jpg -> image_001.jpg" in content


def test_missing_directory_reports_on_stderr(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    code = cli.main(["-d", str(tmp_path / "nope"), "--print-command"])
    captured = capsys.readouterr()
    assert code == cli.EXIT_RENAME_FAILED
    assert "Not a directory" in captured.err
    assert "Not a directory" not in captured.out
