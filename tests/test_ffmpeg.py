"""Tests for the FFmpeg wrappers; no real ffmpeg is executed."""

import json
import subprocess
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from hevc_shrink.core import EncodeJob, EncoderResolver, FFmpegError, FFmpegProbe, FFmpegProcessor
from hevc_shrink.core.ffmpeg import parse_encoder_list

from .conftest import FakeFFmpeg

ENCODERS_OUTPUT = """Encoders:
 V..... = Video
 A..... = Audio
 ------
 V....D libx264              libx264 H.264 / AVC / MPEG-4 AVC
 V....D libx265              libx265 H.265 / HEVC (codec hevc)
 V....D hevc_nvenc           NVIDIA NVENC hevc encoder (codec hevc)
 V....D hevc_vaapi           H.265/HEVC (VAAPI) (codec hevc)
 A....D aac                  AAC (Advanced Audio Coding)
"""


def test_parse_encoder_list_returns_identifiers_only() -> None:
    encoders = parse_encoder_list(ENCODERS_OUTPUT)

    assert encoders == frozenset({"libx264", "libx265", "hevc_nvenc", "hevc_vaapi", "aac"})


def test_encoder_list_failure_yields_empty_set() -> None:
    with patch("hevc_shrink.core.ffmpeg.subprocess.run", side_effect=OSError("no ffmpeg")):
        processor = FFmpegProcessor()
        assert processor.get_available_encoders() == frozenset()
        assert processor.is_encoder_available("libx265") is False


def test_build_video_command_maps_all_streams_and_copies_audio() -> None:
    spec = EncoderResolver(FakeFFmpeg()).resolve("software", 28)
    job = EncodeJob(
        source_path=Path("/videos/a b.mp4"),
        temp_output_path=Path("/videos/.hevc-shrink-0123abcd-a b_h265.mp4"),
        final_output_path=Path("/videos/a b_h265.mp4"),
        encoder_spec=spec,
        original_size=100,
    )

    cmd = FFmpegProcessor().build_video_command(job)

    # Paths with spaces stay single arguments
    assert cmd[cmd.index("-i") + 1] == "/videos/a b.mp4"
    assert cmd[-1] == "/videos/.hevc-shrink-0123abcd-a b_h265.mp4"
    assert cmd[cmd.index("-map") + 1] == "0"
    assert cmd[cmd.index("-c:v") + 1] == "libx265"
    assert cmd[cmd.index("-crf") + 1] == "28"
    assert cmd[cmd.index("-c:a") + 1] == "copy"
    assert cmd[cmd.index("-c:s") + 1] == "copy"


def test_get_video_codec_reads_first_video_stream() -> None:
    result = Mock(stdout=json.dumps({"streams": [{"codec_name": "H264"}]}))
    with patch("hevc_shrink.core.ffmpeg.subprocess.run", return_value=result) as mock_run:
        assert FFmpegProbe.get_video_codec(Path("a.mp4")) == "h264"

    cmd = mock_run.call_args.args[0]
    assert cmd[cmd.index("-select_streams") + 1] == "v:0"


def test_get_video_codec_without_video_stream_is_none() -> None:
    result = Mock(stdout=json.dumps({"streams": []}))
    with patch("hevc_shrink.core.ffmpeg.subprocess.run", return_value=result):
        assert FFmpegProbe.get_video_codec(Path("song.mp4")) is None


def test_probe_failure_raises_ffmpeg_error() -> None:
    error = subprocess.CalledProcessError(1, ["ffprobe"], stderr="Invalid data found")
    with (
        patch("hevc_shrink.core.ffmpeg.subprocess.run", side_effect=error),
        pytest.raises(FFmpegError, match="Invalid data found"),
    ):
        FFmpegProbe.get_video_codec(Path("broken.mp4"))


def test_check_availability_reports_missing_tools() -> None:
    with (
        patch("hevc_shrink.core.ffmpeg.shutil.which", side_effect=lambda exe: None if exe == "ffprobe" else exe),
        pytest.raises(FFmpegError, match="ffprobe"),
    ):
        FFmpegProbe.check_availability()


def test_run_command_nonzero_exit_raises() -> None:
    process = Mock(pid=1234, returncode=1)
    process.communicate.return_value = ("", "Unknown encoder 'hevc_foo'\n")
    with (
        patch("hevc_shrink.core.ffmpeg.subprocess.Popen", return_value=process),
        pytest.raises(FFmpegError) as exc_info,
    ):
        FFmpegProcessor().run_command(["ffmpeg", "-i", "a.mp4", "out.mp4"])

    assert exc_info.value.return_code == 1
    assert "Unknown encoder" in str(exc_info.value)


def test_run_command_interrupt_terminates_process_tree() -> None:
    """Ctrl+C during an encode stops ffmpeg before the interrupt propagates."""
    process = Mock(pid=1234)
    process.communicate.side_effect = KeyboardInterrupt
    with (
        patch("hevc_shrink.core.ffmpeg.subprocess.Popen", return_value=process),
        patch("hevc_shrink.core.ffmpeg._terminate_process_tree") as mock_terminate,
        pytest.raises(KeyboardInterrupt),
    ):
        FFmpegProcessor().run_command(["ffmpeg", "-i", "a.mp4", "out.mp4"])

    mock_terminate.assert_called_once_with(process)


def test_run_command_timeout_raises_ffmpeg_error() -> None:
    process = Mock(pid=1234)
    process.communicate.side_effect = subprocess.TimeoutExpired(cmd="ffmpeg", timeout=5)
    with (
        patch("hevc_shrink.core.ffmpeg.subprocess.Popen", return_value=process),
        patch("hevc_shrink.core.ffmpeg._terminate_process_tree") as mock_terminate,
        pytest.raises(FFmpegError, match="timed out"),
    ):
        FFmpegProcessor(timeout=5).run_command(["ffmpeg", "-i", "a.mp4", "out.mp4"])

    mock_terminate.assert_called_once_with(process)
