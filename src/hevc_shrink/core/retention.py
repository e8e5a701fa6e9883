"""Size based choice between the original and the converted file."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .base import EncodeStatus, ProcessingError, RetentionDecision, RetentionReason

if TYPE_CHECKING:
    from pathlib import Path

    from .base import EncodeJob, EncodeOutcome
    from .context import RunContext

LOG = logging.getLogger(__name__)


class MoveFailedError(ProcessingError):
    """The smaller converted file could not be moved to its final path; the original is untouched."""


class RetentionPolicy:
    """Keeps the converted file only when it is strictly smaller than the original."""

    def __init__(self, context: RunContext) -> None:
        self.context = context

    def apply(self, job: EncodeJob, outcome: EncodeOutcome) -> RetentionDecision:
        """
        Resolve a successful encode.

        Raises:
            MoveFailedError: Moving the temp artifact into place failed. The
                artifact has been removed and the guard released.

        """
        if outcome.status is not EncodeStatus.SUCCEEDED:
            msg = f"Retention needs a successful encode, got {outcome.status.value}"
            raise ValueError(msg)

        converted_size = outcome.produced_size_bytes
        if converted_size < job.original_size:
            return self._keep_converted(job, outcome)
        return self._keep_original(job, converted_size)

    def _keep_converted(self, job: EncodeJob, outcome: EncodeOutcome) -> RetentionDecision:
        files = self.context.file_manager
        converted_size = outcome.produced_size_bytes
        LOG.info(
            "Converted file is smaller (%d < %d bytes), keeping it at '%s'",
            converted_size,
            job.original_size,
            job.final_output_path,
        )

        try:
            files.ensure_directory(job.final_output_path.parent)
            files.move(job.temp_output_path, job.final_output_path)
        except ProcessingError as e:
            LOG.error("Could not move converted file into place, original kept: %s", e)
            if not self.context.dry_run:
                files.remove_quietly(job.temp_output_path)
            self.context.guard.release()
            outcome.status = EncodeStatus.MOVE_FAILED
            outcome.message = str(e)
            raise MoveFailedError(str(e), file_path=job.source_path, cause=e) from e
        self.context.guard.release()

        if job.in_place:
            return RetentionDecision(
                kept_path=job.final_output_path,
                deleted_path=None,
                reason=RetentionReason.SMALLER,
                notes="Original replaced in place",
            )

        if self.context.settings.conversion.keep_originals:
            LOG.info("Keeping original '%s' as requested", job.source_path)
            return RetentionDecision(
                kept_path=job.final_output_path,
                deleted_path=None,
                reason=RetentionReason.SMALLER,
                notes="Original kept as requested",
            )

        deleted = self._delete(job.source_path, "original")
        return RetentionDecision(
            kept_path=job.final_output_path,
            deleted_path=job.source_path,
            reason=RetentionReason.SMALLER,
            delete_succeeded=deleted,
            notes="" if deleted else f"Both '{job.source_path}' and '{job.final_output_path}' remain",
        )

    def _keep_original(self, job: EncodeJob, converted_size: int) -> RetentionDecision:
        LOG.info(
            "Converted file is not smaller (%d >= %d bytes), keeping original '%s'",
            converted_size,
            job.original_size,
            job.source_path,
        )
        deleted = self._delete(job.temp_output_path, "converted")
        # Released either way: an undeletable artifact stays on disk and is reported as such
        self.context.guard.release()

        return RetentionDecision(
            kept_path=job.source_path,
            deleted_path=job.temp_output_path,
            reason=RetentionReason.NOT_SMALLER,
            delete_succeeded=deleted,
            notes=""
            if deleted
            else f"Converted file '{job.temp_output_path}' could not be removed; run 'hevc-shrink cleanup'",
        )

    def _delete(self, file_path: Path, role: str) -> bool:
        try:
            self.context.file_manager.delete(file_path)
        except ProcessingError as e:
            LOG.error("Failed to delete %s file: %s", role, e)
            return False
        return True
