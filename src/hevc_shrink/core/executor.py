"""Runs one encode job against its temp artifact and judges the result."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .base import EncodeOutcome, EncodeStatus, ProcessingError
from .ffmpeg import FFmpegError

if TYPE_CHECKING:
    from .base import EncodeJob
    from .context import RunContext

LOG = logging.getLogger(__name__)


def synthetic_size(original_size: int) -> int:
    """Size a dry run pretends the encode produced: half the original, at least one byte."""
    if original_size <= 0:
        return 0
    return max(1, original_size // 2)


class ConversionExecutor:
    """Encodes into the job's temp path; the crash guard tracks the artifact throughout."""

    def __init__(self, context: RunContext) -> None:
        self.context = context

    def execute(self, job: EncodeJob) -> EncodeOutcome:
        """
        Encode ``job.source_path`` into ``job.temp_output_path``.

        On success the temp artifact stays armed in the crash guard for the
        retention step. On every failure the artifact is removed and the guard
        released before returning.
        """
        guard = self.context.guard
        guard.arm(job.temp_output_path)

        if self.context.dry_run:
            outcome = self._simulate(job)
        else:
            outcome = self._encode(job)

        if outcome.status is not EncodeStatus.SUCCEEDED:
            self._discard(job)
        return outcome

    def _simulate(self, job: EncodeJob) -> EncodeOutcome:
        command = self.context.ffmpeg.build_video_command(job)
        LOG.info("DRY RUN: Would execute: %s", " ".join(command))

        produced = synthetic_size(job.original_size)
        if produced <= 0:
            LOG.error("DRY RUN: Conversion of '%s' would produce an empty file", job.source_path)
            return EncodeOutcome(EncodeStatus.EMPTY_OUTPUT, 0, "Simulated output is empty")
        return EncodeOutcome(EncodeStatus.SUCCEEDED, produced, "Simulated conversion")

    def _encode(self, job: EncodeJob) -> EncodeOutcome:
        try:
            self.context.file_manager.ensure_directory(job.temp_output_path.parent)
        except ProcessingError as e:
            LOG.error("%s", e)
            return EncodeOutcome(EncodeStatus.PROCESS_FAILED, 0, str(e))

        LOG.info("Encoding '%s' with %s", job.source_path.name, job.encoder_spec.describe())
        command = self.context.ffmpeg.build_video_command(job)
        try:
            self.context.ffmpeg.run_command(command, job.source_path)
        except FFmpegError as e:
            message = str(e)
            LOG.error("Conversion failed for '%s': %s", job.source_path, message)
            return EncodeOutcome(EncodeStatus.PROCESS_FAILED, 0, message)

        produced = self.context.file_manager.size(job.temp_output_path)
        if produced <= 0:
            LOG.error("Conversion of '%s' reported success but produced an empty or missing file", job.source_path)
            return EncodeOutcome(EncodeStatus.EMPTY_OUTPUT, 0, "Converted file is empty or missing")

        return EncodeOutcome(EncodeStatus.SUCCEEDED, produced)

    def _discard(self, job: EncodeJob) -> None:
        if not self.context.dry_run and job.temp_output_path.exists():
            self.context.file_manager.remove_quietly(job.temp_output_path)
        self.context.guard.release()
