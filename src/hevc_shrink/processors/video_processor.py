"""Video processor: drives every discovered file through classify, encode and retain."""

from __future__ import annotations

import shutil
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

from tqdm import tqdm

from ..core import (
    CodecClass,
    CodecClassifier,
    ConfigurationError,
    ConversionExecutor,
    EncodeJob,
    EncoderResolver,
    EncodeStatus,
    FFmpegProbe,
    FFmpegProcessor,
    MediaProcessor,
    MoveFailedError,
    ProcessingResult,
    ProcessingStatus,
    RetentionPolicy,
    RetentionReason,
    RunContext,
    discover_candidates,
)
from ..core.thermal import check_thermal_throttling

if TYPE_CHECKING:
    from ..config import Settings
    from ..core import CandidateFile, ConfigManager, EncoderSpec, RetentionDecision

SKIP_STATUSES = {
    CodecClass.TARGET: ProcessingStatus.SKIPPED_TARGET,
    CodecClass.OTHER: ProcessingStatus.SKIPPED_OTHER,
    CodecClass.UNKNOWN: ProcessingStatus.SKIPPED_UNKNOWN,
}


class VideoProcessor(MediaProcessor):
    """Converts source-codec videos to the target codec and keeps whichever file is smaller."""

    def __init__(
        self,
        config_manager: ConfigManager,
        ffmpeg: FFmpegProcessor | None = None,
        resolver: EncoderResolver | None = None,
    ) -> None:
        """Initialize video processor with config manager."""
        super().__init__("VideoProcessor")
        self.config_manager = config_manager
        self.settings: Settings = config_manager.resolved()
        self.ffmpeg = ffmpeg or FFmpegProcessor(timeout=self.settings.encoder.timeout)
        self.resolver = resolver or EncoderResolver(self.ffmpeg)
        self.classifier = CodecClassifier(self.settings.conversion.source_codec, self.settings.conversion.target_codec)

        self.context: RunContext | None = None
        self.encoder_spec: EncoderSpec | None = None
        self._executor: ConversionExecutor | None = None
        self._retention: RetentionPolicy | None = None

    def resolve_encoder(self) -> EncoderSpec:
        """Resolve the configured encoder once; every job of the run shares it."""
        encoder = self.settings.encoder
        if encoder.type == "hardware" and not shutil.which("vainfo"):
            self.logger.warning("vainfo not found; VAAPI device capabilities cannot be inspected")

        spec = self.resolver.resolve(
            encoder.type,
            encoder.quality,
            preset=encoder.cpu_preset,
            device=encoder.device,
            hardware_order=encoder.hardware_order,
        )
        self.logger.info("Encoder: %s", spec.describe())
        return spec

    def begin_run(self, root: Path) -> RunContext:
        """Check tools, resolve the encoder and create the run context for ``root``."""
        if not root.is_dir():
            msg = f"Input directory does not exist or is not a directory: {root}"
            raise ConfigurationError(msg, file_path=root)

        FFmpegProbe.check_availability()
        self.encoder_spec = self.resolve_encoder()
        self.context = RunContext.create(self.settings, root, self.ffmpeg)
        self._executor = ConversionExecutor(self.context)
        self._retention = RetentionPolicy(self.context)
        return self.context

    def process_directory(self, root: Path, *, show_progress: bool | None = None) -> list[ProcessingResult]:
        """
        Process every candidate under ``root`` sequentially.

        Args:
            root: Directory to walk
            show_progress: Draw a progress bar; defaults to whether stderr is a terminal

        Returns:
            One terminal result per discovered file, in discovery order

        Raises:
            ConfigurationError: Bad root directory, extension list or encoder settings
            FFmpegError: ffmpeg or ffprobe is not installed

        """
        root = Path(root)
        candidates = discover_candidates(root, self.settings.conversion.extensions)
        context = self.begin_run(root)

        if not candidates:
            self.logger.info("No video files found to process in %s", root)
            context.stats.log_report(dry_run=context.dry_run)
            return []

        if show_progress is None:
            show_progress = sys.stderr.isatty()

        results: list[ProcessingResult] = []
        with context.guard:
            progress_bar = tqdm(
                total=len(candidates),
                desc="Converting Videos",
                unit="file",
                disable=not show_progress,
                bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]",
            )
            try:
                for candidate in candidates:
                    progress_bar.set_description(f"Processing {candidate.path.name}")
                    result = self.process_file(candidate)
                    self._account(result)
                    results.append(result)
                    progress_bar.update(1)

                    if self.settings.global_.thermal_pause and not context.dry_run:
                        check_thermal_throttling()
            except KeyboardInterrupt:
                self.logger.warning("Interrupted after %d of %d files", len(results), len(candidates))
                raise
            finally:
                progress_bar.close()
                context.stats.log_report(dry_run=context.dry_run)

        return results

    def process_file(self, candidate: CandidateFile) -> ProcessingResult:
        """Take one candidate to its terminal state; requires ``begin_run``."""
        context, executor, retention, encoder_spec = self._require_run()
        start_time = time.time()
        source = candidate.path
        self.logger.info("Checking: %s", source)

        codec_class = self.classifier.classify(source)
        if codec_class in SKIP_STATUSES:
            return self._skipped(candidate, codec_class, start_time)

        final_path = context.final_output_path(source)
        if final_path != source and self.classifier.is_already_converted(final_path):
            self.logger.info("Skipping '%s': '%s' already exists as %s", source, final_path, self.classifier.target_codec)
            return ProcessingResult(
                source_file=source,
                status=ProcessingStatus.SKIPPED_ALREADY_CONVERTED,
                message=f"Converted file already exists: {final_path}",
                output_file=final_path,
                original_size=candidate.size_bytes,
                processing_time=time.time() - start_time,
            )

        job = EncodeJob(
            source_path=source,
            temp_output_path=context.temp_output_path(final_path),
            final_output_path=final_path,
            encoder_spec=encoder_spec,
            original_size=candidate.size_bytes,
        )
        metadata = {"encoder": encoder_spec.encoder, "fallback_used": encoder_spec.fallback_used}

        with context.guard.track(job.temp_output_path):
            outcome = executor.execute(job)
            if outcome.status is not EncodeStatus.SUCCEEDED:
                return ProcessingResult(
                    source_file=source,
                    status=ProcessingStatus.FAILED_CONVERSION,
                    message=f"{outcome.status.value}: {outcome.message}",
                    original_size=job.original_size,
                    processing_time=time.time() - start_time,
                    metadata=metadata,
                )

            try:
                decision = retention.apply(job, outcome)
            except MoveFailedError as e:
                return ProcessingResult(
                    source_file=source,
                    status=ProcessingStatus.FAILED_MOVE,
                    message=f"{outcome.status.value}, original kept: {e}",
                    original_size=job.original_size,
                    new_size=outcome.produced_size_bytes,
                    processing_time=time.time() - start_time,
                    metadata=metadata,
                )

        return self._retained(job, outcome.produced_size_bytes, decision, start_time, metadata)

    def _retained(
        self,
        job: EncodeJob,
        converted_size: int,
        decision: RetentionDecision,
        start_time: float,
        metadata: dict[str, object],
    ) -> ProcessingResult:
        kept_converted = decision.reason is RetentionReason.SMALLER
        if not decision.delete_succeeded:
            status = ProcessingStatus.FAILED_DELETION
        elif kept_converted:
            status = ProcessingStatus.KEPT_CONVERTED
        else:
            status = ProcessingStatus.REVERTED_NOT_SMALLER

        if kept_converted:
            message = f"Converted file kept ({converted_size} < {job.original_size} bytes)"
        else:
            message = f"Converted file not smaller ({converted_size} >= {job.original_size} bytes), original kept"
        if decision.notes:
            message += f". {decision.notes}"

        return ProcessingResult(
            source_file=job.source_path,
            status=status,
            message=message,
            output_file=job.final_output_path if kept_converted else None,
            original_size=job.original_size,
            new_size=converted_size,
            processing_time=time.time() - start_time,
            metadata={**metadata, "reason": decision.reason.value},
        )

    def _skipped(self, candidate: CandidateFile, codec_class: CodecClass, start_time: float) -> ProcessingResult:
        status = SKIP_STATUSES[codec_class]
        if codec_class is CodecClass.UNKNOWN:
            self.logger.warning("Could not determine the video codec of '%s', skipping", candidate.path)
            message = "Video codec could not be determined"
        elif codec_class is CodecClass.TARGET:
            self.logger.info("'%s' is already %s, skipping", candidate.path.name, self.classifier.target_codec)
            message = f"Already {self.classifier.target_codec}"
        else:
            self.logger.info("'%s' is neither %s nor %s, skipping", candidate.path.name, *self._codecs())
            message = "Other codec"

        return ProcessingResult(
            source_file=candidate.path,
            status=status,
            message=message,
            original_size=candidate.size_bytes,
            processing_time=time.time() - start_time,
        )

    def _codecs(self) -> tuple[str, str]:
        return self.classifier.source_codec, self.classifier.target_codec

    def _account(self, result: ProcessingResult) -> None:
        context = self._require_run()[0]
        context.stats.record(result)
        context.audit.emit(result)

    def _require_run(self) -> tuple[RunContext, ConversionExecutor, RetentionPolicy, EncoderSpec]:
        if self.context is None or self._executor is None or self._retention is None or self.encoder_spec is None:
            msg = "begin_run() must be called before processing files"
            raise RuntimeError(msg)
        return self.context, self._executor, self._retention, self.encoder_spec
