"""hevc-shrink - batch H.264 to HEVC conversion that keeps whichever file is smaller."""

from __future__ import annotations

__version__ = "0.1.0"
__description__ = "Batch H.264 to HEVC conversion with size based retention"

# Public API exports
from .config import Settings, get_config
from .core import (
    CodecClassifier,
    ConfigManager,
    ConfigurationError,
    CrashGuard,
    EncoderResolver,
    FFmpegError,
    FFmpegProbe,
    FFmpegProcessor,
    FileManager,
    MediaProcessor,
    ProcessingError,
    ProcessingResult,
    ProcessingStatus,
    RunStats,
    discover_candidates,
    with_config_overrides,
)
from .processors import VideoProcessor

__all__ = [
    # Configuration
    "Settings",
    "get_config",
    "ConfigManager",
    "with_config_overrides",
    # Core functionality
    "MediaProcessor",
    "FFmpegProcessor",
    "FFmpegProbe",
    "FileManager",
    "CodecClassifier",
    "EncoderResolver",
    "CrashGuard",
    "RunStats",
    "discover_candidates",
    # Processors
    "VideoProcessor",
    # Enums and data classes
    "ProcessingStatus",
    "ProcessingResult",
    # Exceptions
    "ProcessingError",
    "ConfigurationError",
    "FFmpegError",
]
