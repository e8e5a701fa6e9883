"""Tests for the command line interface."""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from hevc_shrink.cli.main import ShrinkCLI
from hevc_shrink.processors import VideoProcessor

from .conftest import FakeFFmpeg, write_video


def cli_run(config_file: Path, *args: str) -> int:
    return ShrinkCLI().run(["--config", str(config_file), *args])


def test_dry_run_convert_reports_without_changes(
    config_file: Path, media_root: Path, codecs: dict, capsys: pytest.CaptureFixture
) -> None:
    write_video(media_root / "a.mp4", 100)
    codecs["a.mp4"] = "h264"

    exit_code = cli_run(config_file, "--dry-run", "convert", str(media_root), "--yes")

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "--- Conversion Summary ---" in out
    assert "Successful conversions (converted kept, original removed): 1" in out
    assert "DRY RUN COMPLETED" in out
    assert sorted(p.name for p in media_root.iterdir()) == ["a.mp4"]


def test_declining_confirmation_processes_nothing(
    config_file: Path, media_root: Path, codecs: dict, capsys: pytest.CaptureFixture
) -> None:
    write_video(media_root / "a.mp4", 100)
    codecs["a.mp4"] = "h264"

    with (
        patch("builtins.input", return_value="y"),
        patch.object(VideoProcessor, "process_directory") as mock_process,
    ):
        exit_code = cli_run(config_file, "convert", str(media_root))

    assert exit_code == 0
    mock_process.assert_not_called()
    assert "Operation cancelled." in capsys.readouterr().out


def test_failures_give_exit_code_one_and_a_table(
    config_file: Path, media_root: Path, codecs: dict, capsys: pytest.CaptureFixture
) -> None:
    write_video(media_root / "a.mp4", 100)
    codecs["a.mp4"] = "h264"

    def processor_with_failing_encoder(config_manager):  # noqa: ANN001, ANN202
        return VideoProcessor(config_manager, ffmpeg=FakeFFmpeg({"a.mp4": None}))

    with patch("hevc_shrink.cli.commands.convert.VideoProcessor", side_effect=processor_with_failing_encoder):
        exit_code = cli_run(config_file, "convert", str(media_root), "-y")

    out = capsys.readouterr().out
    assert exit_code == 1
    assert "VIDEO CONVERSION FAILURES" in out
    assert "a.mp4" in out
    assert (media_root / "a.mp4").exists()


def test_configuration_error_exits_with_one(tmp_path: Path, media_root: Path, codecs: dict) -> None:
    config_file = tmp_path / "empty_ext.yaml"
    config_file.write_text(
        yaml.safe_dump({"conversion": {"extensions": []}, "global": {"log_file": None}}), encoding="utf-8"
    )

    assert cli_run(config_file, "convert", str(media_root), "-y") == 1


def test_interrupt_exits_with_130(config_file: Path, media_root: Path, codecs: dict) -> None:
    with patch.object(VideoProcessor, "process_directory", side_effect=KeyboardInterrupt):
        assert cli_run(config_file, "convert", str(media_root), "-y") == 130


def test_quality_out_of_range_is_rejected(config_file: Path, media_root: Path) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli_run(config_file, "convert", str(media_root), "-q", "60")

    assert exc_info.value.code == 2


def test_cleanup_removes_leftover_temp_files(
    config_file: Path, media_root: Path, capsys: pytest.CaptureFixture
) -> None:
    leftover = write_video(media_root / "sub" / ".hevc-shrink-0123abcd-a_h265.mp4", 10)
    keeper = write_video(media_root / "sub" / "a.mp4", 10)

    assert cli_run(config_file, "cleanup", str(media_root), "--dry-run") == 0
    assert leftover.exists()
    assert "Would remove" in capsys.readouterr().out

    assert cli_run(config_file, "cleanup", str(media_root)) == 0
    assert not leftover.exists()
    assert keeper.exists()


def test_log_file_gets_header(tmp_path: Path, media_root: Path, codecs: dict) -> None:
    log_file = tmp_path / "conversion_log.txt"
    config_file = tmp_path / "logging.yaml"
    config_file.write_text(yaml.safe_dump({"global": {"thermal_pause": False}}), encoding="utf-8")

    cli_run(config_file, "--log-file", str(log_file), "--dry-run", "convert", str(media_root), "-y")

    text = log_file.read_text(encoding="utf-8")
    assert text.startswith("--- Log Start ")
    assert "No video files found to process" in text


def test_missing_path_is_asked_for_with_settings(
    config_file: Path, media_root: Path, codecs: dict, capsys: pytest.CaptureFixture
) -> None:
    """Without a path the directory, encoder and preset are asked for before the confirmation."""
    write_video(media_root / "a.mp4", 100)
    codecs["a.mp4"] = "h264"
    answers = [str(media_root / "missing"), str(media_root), "tpu", "cpu", "slow", "yes"]

    with patch("builtins.input", side_effect=answers) as mock_input:
        exit_code = cli_run(config_file, "--dry-run", "convert")

    out = capsys.readouterr().out
    assert exit_code == 0
    assert mock_input.call_count == len(answers)
    assert "Directory not found" in out
    assert "Invalid encoder type" in out
    assert "software (quality 28, preset slow)" in out
    assert "--- Conversion Summary ---" in out


def test_settings_given_on_the_command_line_are_not_asked_for(
    config_file: Path, media_root: Path, codecs: dict
) -> None:
    with patch("builtins.input", side_effect=[str(media_root)]) as mock_input:
        exit_code = cli_run(config_file, "--dry-run", "convert", "--encoder", "cpu", "--preset", "fast", "-y")

    assert exit_code == 0
    mock_input.assert_called_once()


def test_closed_input_while_asking_cancels(config_file: Path, capsys: pytest.CaptureFixture) -> None:
    with (
        patch("builtins.input", side_effect=EOFError),
        patch.object(VideoProcessor, "process_directory") as mock_process,
    ):
        assert cli_run(config_file, "convert") == 0

    mock_process.assert_not_called()
    assert "Operation cancelled." in capsys.readouterr().out
