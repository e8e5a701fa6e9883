"""Tests for temp artifact tracking."""

import logging
from pathlib import Path

import pytest

from hevc_shrink.core import CrashGuard

from .conftest import write_video


def test_track_removes_artifact_on_interrupt(tmp_path: Path) -> None:
    """An interrupt in the middle of an encode leaves no temp file behind."""
    temp = tmp_path / ".hevc-shrink-0123abcd-a_h265.mp4"

    with pytest.raises(KeyboardInterrupt), CrashGuard() as guard, guard.track(temp):
        write_video(temp, 10)
        raise KeyboardInterrupt

    assert not temp.exists()
    assert guard.tracked is None


def test_released_artifact_is_left_alone(tmp_path: Path) -> None:
    temp = write_video(tmp_path / ".hevc-shrink-0123abcd-a_h265.mp4", 10)

    with CrashGuard() as guard, guard.track(temp):
        guard.release()

    assert temp.exists()


def test_sweep_runs_once(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    temp = write_video(tmp_path / ".hevc-shrink-0123abcd-a_h265.mp4", 10)
    guard = CrashGuard()
    guard.arm(temp)

    with caplog.at_level(logging.WARNING):
        guard.sweep()
        write_video(temp, 10)
        guard.arm(temp)
        guard.sweep()

    assert temp.exists()
    assert caplog.text.count("Cleaned up temporary file") == 1


def test_dry_run_only_logs(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    temp = write_video(tmp_path / ".hevc-shrink-0123abcd-a_h265.mp4", 10)

    with caplog.at_level(logging.WARNING), CrashGuard(dry_run=True) as guard:
        guard.arm(temp)

    assert temp.exists()
    assert "DRY RUN: Would have cleaned up" in caplog.text


def test_arming_a_new_path_removes_a_stale_one(tmp_path: Path) -> None:
    stale = write_video(tmp_path / ".hevc-shrink-0123abcd-a_h265.mp4", 10)
    guard = CrashGuard()
    guard.arm(stale)

    guard.arm(tmp_path / ".hevc-shrink-0123abcd-b_h265.mp4")

    assert not stale.exists()
    assert guard.tracked == tmp_path / ".hevc-shrink-0123abcd-b_h265.mp4"
