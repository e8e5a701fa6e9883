"""FFmpeg integration: probing, encoder capabilities and encode execution."""

from __future__ import annotations

import json
import logging
import shlex
import shutil
import subprocess
import time
from typing import TYPE_CHECKING, Any

import psutil

from ..config.constants import ENCODER_LIST_TIMEOUT_SECONDS, PROBE_TIMEOUT_SECONDS
from .base import ProcessingError

if TYPE_CHECKING:
    from pathlib import Path

    from .base import EncodeJob

LOG = logging.getLogger(__name__)

ENCODERS_LIST_MINIMUM_PARTS = 2
TERMINATE_GRACE_SECONDS = 5


class FFmpegError(ProcessingError):
    """FFmpeg-specific error."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        return_code: int | None = None,
        stderr: str | None = None,
        file_path: Path | None = None,
    ) -> None:
        """Initialize FFmpeg error with detailed context."""
        super().__init__(message, file_path=file_path)
        self.command = command
        self.return_code = return_code
        self.stderr = stderr


class FFmpegProbe:
    """ffprobe wrapper for video stream inspection."""

    @staticmethod
    def check_availability() -> None:
        """Check if FFmpeg tools are available."""
        required = ["ffmpeg", "ffprobe"]
        missing = [exe for exe in required if not shutil.which(exe)]

        if missing:
            error_msg = f"Missing FFmpeg executables: {', '.join(missing)}"
            LOG.error(error_msg)
            raise FFmpegError(error_msg)

    @staticmethod
    def probe_media(file_path: Path, stream_type: str | None = None) -> dict[str, Any]:
        """Probe media file for stream metadata."""
        cmd = [
            "ffprobe",
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_streams",
        ]

        if stream_type:
            cmd.extend(["-select_streams", f"{stream_type}:0"])

        cmd.append(str(file_path))

        try:
            result = subprocess.run(  # noqa: S603
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=PROBE_TIMEOUT_SECONDS,
                encoding="utf-8",
                errors="replace",
            )
            probe_data = json.loads(result.stdout or "{}")
        except subprocess.CalledProcessError as e:
            # Capture both stderr and stdout for detailed error info
            error_details = e.stderr or e.stdout or "No error output"
            msg = f"ffprobe failed for {file_path}: {error_details.strip()}"
            raise FFmpegError(
                msg,
                command=cmd,
                return_code=e.returncode,
                file_path=file_path,
                stderr=e.stderr,
            ) from e
        except subprocess.TimeoutExpired as e:
            msg = f"ffprobe timed out for {file_path}"
            raise FFmpegError(msg, command=cmd, file_path=file_path) from e
        except json.JSONDecodeError as e:
            msg = f"Invalid JSON from ffprobe for {file_path}: {e}"
            raise FFmpegError(msg, command=cmd, file_path=file_path) from e
        except OSError as e:
            msg = f"Could not run ffprobe for {file_path}: {e}"
            raise FFmpegError(msg, command=cmd, file_path=file_path) from e
        else:
            return probe_data

    @staticmethod
    def get_video_codec(file_path: Path) -> str | None:
        """Return the codec name of the first video stream, or None when there is none."""
        data = FFmpegProbe.probe_media(file_path, "v")
        streams = data.get("streams") or []
        if not streams:
            return None

        codec = str(streams[0].get("codec_name") or "").strip().lower()
        return codec or None


def _terminate_process_tree(process: subprocess.Popen) -> None:
    """Stop ffmpeg and anything it spawned, escalating to kill after a grace period."""
    try:
        children = psutil.Process(process.pid).children(recursive=True)
    except psutil.NoSuchProcess:
        children = []

    for child in children:
        try:
            child.terminate()
        except psutil.NoSuchProcess:
            continue
    process.terminate()

    _, alive = psutil.wait_procs(children, timeout=TERMINATE_GRACE_SECONDS)
    for child in alive:
        try:
            child.kill()
        except psutil.NoSuchProcess:
            continue

    try:
        process.wait(timeout=TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()


class FFmpegProcessor:
    """FFmpeg command executor with enhanced error handling."""

    def __init__(self, timeout: int | None = None) -> None:
        """Initialize FFmpeg processor; ``timeout`` of None waits for ever."""
        self.timeout = timeout
        self._available_encoders: frozenset[str] | None = None

    def get_available_encoders(self) -> frozenset[str]:
        """Encoder identifiers advertised by ``ffmpeg -encoders``. Cached per instance."""
        if self._available_encoders is not None:
            return self._available_encoders

        try:
            result = subprocess.run(
                ["ffmpeg", "-hide_banner", "-encoders"],  # noqa: S607
                capture_output=True,
                text=True,
                check=True,
                timeout=ENCODER_LIST_TIMEOUT_SECONDS,
                encoding="utf-8",
                errors="replace",
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            LOG.warning("Failed to get encoder list: %s", e)
            self._available_encoders = frozenset()
        else:
            self._available_encoders = parse_encoder_list(result.stdout)
            LOG.debug("Found %d available encoders", len(self._available_encoders))

        return self._available_encoders

    def is_encoder_available(self, encoder: str) -> bool:
        """Check if a specific encoder is available."""
        return encoder in self.get_available_encoders()

    def run_command(self, command: list[str], file_path: Path | None = None) -> subprocess.CompletedProcess:
        """Run an FFmpeg command to completion, raising FFmpegError on failure."""
        LOG.debug("Running FFmpeg command: %s", shlex.join(command))
        start_time = time.time()

        try:
            process = subprocess.Popen(  # noqa: S603
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            msg = f"Could not start FFmpeg: {e}"
            raise FFmpegError(msg, command=command, file_path=file_path) from e

        try:
            stdout, stderr = process.communicate(timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            _terminate_process_tree(process)
            msg = f"FFmpeg command timed out after {self.timeout}s"
            raise FFmpegError(msg, command=command, file_path=file_path) from e
        except KeyboardInterrupt:
            LOG.warning("Interrupted, stopping FFmpeg (pid %d)", process.pid)
            _terminate_process_tree(process)
            raise

        LOG.debug("FFmpeg command completed in %.2fs", time.time() - start_time)
        result = subprocess.CompletedProcess(command, process.returncode, stdout, stderr)

        if result.returncode != 0:
            self._handle_ffmpeg_error(result, command, file_path)
        return result

    def _handle_ffmpeg_error(
        self, result: subprocess.CompletedProcess, command: list[str], file_path: Path | None
    ) -> None:
        """Handle FFmpeg command error by raising appropriate exception."""
        error_msg = f"FFmpeg failed with return code {result.returncode}"
        if result.stderr:
            error_msg += f": {result.stderr.strip()}"

        raise FFmpegError(
            error_msg,
            command=command,
            return_code=result.returncode,
            stderr=result.stderr,
            file_path=file_path,
        )

    def build_video_command(self, job: EncodeJob) -> list[str]:
        """Build the encode command for a job: every stream mapped, audio and subtitles copied."""
        spec = job.encoder_spec
        cmd = [
            "ffmpeg",
            "-hide_banner",
            "-nostdin",
            "-loglevel",
            "error",
            "-y",
            *spec.input_args,
            "-i",
            str(job.source_path),
            "-map",
            "0",
            *spec.video_args,
            "-c:a",
            "copy",
            "-c:s",
            "copy",
            str(job.temp_output_path),
        ]
        return cmd


def parse_encoder_list(output: str) -> frozenset[str]:
    """Parse ``ffmpeg -encoders`` output into the set of encoder identifiers."""
    encoders = set()
    for line in output.splitlines():
        # Encoder lines start with a capability column such as " V....D"
        if line.startswith((" V", " A", " S")):
            parts = line.split()
            if len(parts) >= ENCODERS_LIST_MINIMUM_PARTS and not parts[1].startswith("="):
                encoders.add(parts[1])
    return frozenset(encoders)
