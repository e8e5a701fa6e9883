"""Classification of files by the codec of their first video stream."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .base import CodecClass
from .ffmpeg import FFmpegError, FFmpegProbe

if TYPE_CHECKING:
    from pathlib import Path

LOG = logging.getLogger(__name__)


class CodecClassifier:
    """Sorts files into target, source, other or unknown codec."""

    def __init__(self, source_codec: str = "h264", target_codec: str = "hevc") -> None:
        self.source_codec = source_codec.lower()
        self.target_codec = target_codec.lower()

    def probe_codec(self, file_path: Path) -> str | None:
        """Codec name of the first video stream; None when probing fails or finds nothing."""
        try:
            codec = FFmpegProbe.get_video_codec(file_path)
        except FFmpegError as e:
            LOG.debug("Probe failed for %s: %s", file_path, e)
            return None

        LOG.debug("Detected codec for '%s': '%s'", file_path, codec)
        return codec

    def classify(self, file_path: Path) -> CodecClass:
        """Classify ``file_path``."""
        codec = self.probe_codec(file_path)
        if not codec:
            return CodecClass.UNKNOWN
        if codec == self.target_codec:
            return CodecClass.TARGET
        if codec == self.source_codec:
            return CodecClass.SOURCE
        return CodecClass.OTHER

    def is_already_converted(self, final_path: Path) -> bool:
        """True when ``final_path`` exists and already holds a target-codec stream."""
        if not final_path.exists():
            return False

        codec = self.probe_codec(final_path)
        if codec == self.target_codec:
            return True

        LOG.warning(
            "Target file '%s' already exists but is not %s (codec: %s); it will be overwritten",
            final_path,
            self.target_codec,
            codec or "unknown",
        )
        return False
