"""Core conversion engine: discovery, classification, encoding, retention and accounting."""

from .audit import AuditLog, AuditRecord
from .base import (
    CandidateFile,
    CodecClass,
    ConfigurationError,
    EncodeJob,
    EncodeOutcome,
    EncoderSpec,
    EncodeStatus,
    MediaProcessor,
    ProcessingError,
    ProcessingResult,
    ProcessingStatus,
    RetentionDecision,
    RetentionReason,
)
from .classifier import CodecClassifier
from .config import ConfigManager, ProcessingOptions, with_config_overrides
from .context import RunContext
from .crash_guard import CrashGuard
from .discovery import discover_candidates
from .encoders import EncoderResolver
from .executor import ConversionExecutor
from .ffmpeg import FFmpegError, FFmpegProbe, FFmpegProcessor
from .file_manager import FileManager
from .retention import MoveFailedError, RetentionPolicy
from .stats import RunStats

__all__ = [
    "AuditLog",
    "AuditRecord",
    "CandidateFile",
    "CodecClass",
    "CodecClassifier",
    "ConfigManager",
    "ConfigurationError",
    "ConversionExecutor",
    "CrashGuard",
    "EncodeJob",
    "EncodeOutcome",
    "EncodeStatus",
    "EncoderResolver",
    "EncoderSpec",
    "FFmpegError",
    "FFmpegProbe",
    "FFmpegProcessor",
    "FileManager",
    "MediaProcessor",
    "MoveFailedError",
    "ProcessingError",
    "ProcessingOptions",
    "ProcessingResult",
    "ProcessingStatus",
    "RetentionDecision",
    "RetentionPolicy",
    "RetentionReason",
    "RunContext",
    "RunStats",
    "discover_candidates",
    "with_config_overrides",
]
