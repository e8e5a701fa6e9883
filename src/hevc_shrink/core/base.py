"""Base classes, data types and exceptions for the conversion engine."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

LOG = logging.getLogger(__name__)


class CodecClass(Enum):
    """Classification of a file's primary video stream."""

    TARGET = "target"
    SOURCE = "source"
    OTHER = "other"
    UNKNOWN = "unknown"


class ProcessingStatus(Enum):
    """Terminal state of one discovered file. Every file ends in exactly one."""

    SKIPPED_TARGET = "skipped_target"
    SKIPPED_ALREADY_CONVERTED = "skipped_already_converted"
    SKIPPED_OTHER = "skipped_other"
    SKIPPED_UNKNOWN = "skipped_unknown"
    KEPT_CONVERTED = "kept_after_conversion"
    REVERTED_NOT_SMALLER = "reverted_not_smaller"
    FAILED_CONVERSION = "failed_conversions"
    FAILED_MOVE = "failed_moves"
    FAILED_DELETION = "failed_deletions"

    @property
    def is_failure(self) -> bool:
        """True for outcomes that need operator attention."""
        return self in {
            ProcessingStatus.FAILED_CONVERSION,
            ProcessingStatus.FAILED_MOVE,
            ProcessingStatus.FAILED_DELETION,
        }

    @property
    def is_source(self) -> bool:
        """True when the file was identified as source codec."""
        return self not in {
            ProcessingStatus.SKIPPED_TARGET,
            ProcessingStatus.SKIPPED_OTHER,
            ProcessingStatus.SKIPPED_UNKNOWN,
        }


class EncodeStatus(Enum):
    """Result of one encode attempt."""

    SUCCEEDED = "succeeded"
    PROCESS_FAILED = "process_failed"
    EMPTY_OUTPUT = "empty_output"
    MOVE_FAILED = "move_failed"


class RetentionReason(Enum):
    """Why a file survived the size comparison."""

    SMALLER = "smaller"
    NOT_SMALLER = "not_smaller"


@dataclass(frozen=True)
class CandidateFile:
    """A discovered file matching the extension allowlist."""

    path: Path
    size_bytes: int
    extension: str


@dataclass(frozen=True)
class EncoderSpec:
    """A resolved encoder and the ffmpeg arguments that drive it."""

    encoder_class: str
    encoder: str
    quality_value: int
    quality_args: tuple[str, ...]
    preset: str | None = None
    device: str | None = None
    input_args: tuple[str, ...] = ()
    requested_class: str = "software"
    fallback_used: bool = False
    tried: tuple[str, ...] = ()

    @property
    def video_args(self) -> tuple[str, ...]:
        """Arguments following the input: codec selection plus rate control."""
        return ("-c:v", self.encoder, *self.quality_args)

    def describe(self) -> str:
        """Short human readable description for logs and reports."""
        text = f"{self.encoder} ({self.encoder_class}, quality {self.quality_value}"
        if self.preset:
            text += f", preset {self.preset}"
        if self.device and self.encoder_class == "hardware":
            text += f", device {self.device}"
        text += ")"
        if self.fallback_used:
            text += f" [fallback from {self.requested_class}]"
        return text


@dataclass(frozen=True)
class EncodeJob:
    """One planned conversion of a source-codec file."""

    source_path: Path
    temp_output_path: Path
    final_output_path: Path
    encoder_spec: EncoderSpec
    original_size: int

    @property
    def in_place(self) -> bool:
        """True when the converted file replaces the source at the same path."""
        return self.final_output_path == self.source_path


@dataclass
class EncodeOutcome:
    """What the executor produced for a job."""

    status: EncodeStatus
    produced_size_bytes: int = 0
    message: str = ""


@dataclass
class RetentionDecision:
    """Which of (original, converted) survived and whether the other was removed."""

    kept_path: Path
    deleted_path: Path | None
    reason: RetentionReason
    delete_succeeded: bool = True
    notes: str = ""


@dataclass
class ProcessingResult:
    """Terminal result of processing one discovered file."""

    source_file: Path
    status: ProcessingStatus
    message: str = ""
    output_file: Path | None = None
    original_size: int | None = None
    new_size: int | None = None
    processing_time: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def reduction_percent(self) -> float | None:
        """Size reduction of the kept converted file, if one was kept."""
        if self.status is not ProcessingStatus.KEPT_CONVERTED:
            return None
        if not self.original_size or self.new_size is None:
            return None
        return (self.original_size - self.new_size) / self.original_size * 100


class ProcessingError(Exception):
    """Base exception for conversion errors."""

    def __init__(
        self,
        message: str,
        file_path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.file_path = file_path
        self.cause = cause


class ConfigurationError(ProcessingError):
    """Invalid configuration; aborts the run before any file is touched."""


class MediaProcessor(ABC):
    """Abstract base class for media processors."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    @abstractmethod
    def process_file(self, candidate: CandidateFile) -> ProcessingResult:
        """Process a single file to a terminal state."""
