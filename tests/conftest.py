"""Shared fixtures: a fake ffmpeg that writes synthetic outputs and a probe keyed by file name."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from hevc_shrink.core import ConfigManager, FFmpegError, FFmpegProbe, FFmpegProcessor


class FakeFFmpeg(FFmpegProcessor):
    """Writes ``sizes[source name]`` bytes to the output instead of encoding."""

    def __init__(self, sizes: dict[str, int | None] | None = None, encoders: set[str] | None = None) -> None:
        super().__init__()
        self.sizes = sizes or {}
        self._available_encoders = frozenset(encoders or {"libx265"})
        self.commands: list[list[str]] = []

    def run_command(self, command: list[str], file_path: Path | None = None):  # noqa: ANN201
        self.commands.append(command)
        source = Path(command[command.index("-i") + 1])
        output = Path(command[-1])
        size = self.sizes.get(source.name, 1)
        if size is None:
            msg = "FFmpeg failed with return code 1: simulated failure"
            raise FFmpegError(msg, command=command, return_code=1, file_path=file_path)
        output.write_bytes(b"\0" * size)
        return None


def write_video(path: Path, size: int) -> Path:
    """Create a file standing in for a video of ``size`` bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\1" * size)
    return path


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Config with thermal pauses and the log file disabled."""
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump({"global": {"thermal_pause": False, "log_file": None}}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def config_manager(config_file: Path) -> ConfigManager:
    return ConfigManager(config_file)


@pytest.fixture
def media_root(tmp_path: Path) -> Path:
    root = tmp_path / "media"
    root.mkdir()
    return root


@pytest.fixture
def codecs():
    """Patch probing; map file names to codec names in the returned dict (missing -> no video stream)."""
    mapping: dict[str, str | None] = {}

    def fake_codec(file_path: Path) -> str | None:
        codec = mapping.get(Path(file_path).name)
        if codec == "ERROR":
            msg = f"ffprobe failed for {file_path}"
            raise FFmpegError(msg, file_path=file_path)
        return codec

    with (
        patch.object(FFmpegProbe, "get_video_codec", side_effect=fake_codec),
        patch.object(FFmpegProbe, "check_availability", return_value=None),
    ):
        yield mapping
