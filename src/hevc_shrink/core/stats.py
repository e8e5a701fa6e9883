"""Run-level accounting and the final conversion report."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

from ..config.constants import BYTES_PER_MB
from .base import ProcessingStatus

if TYPE_CHECKING:
    from .base import ProcessingResult

LOG = logging.getLogger(__name__)

# Statuses whose files went through the size comparison
COMPARED_STATUSES = {
    ProcessingStatus.KEPT_CONVERTED,
    ProcessingStatus.REVERTED_NOT_SMALLER,
    ProcessingStatus.FAILED_DELETION,
}

REPORT_LABELS = {
    "checked": "Total files checked",
    "source_identified": "Source codec files identified for processing",
    "kept_after_conversion": "Successful conversions (converted kept, original removed)",
    "reverted_not_smaller": "Reverted (converted removed, was not smaller)",
    "failed_conversions": "Failed conversions (encoder error or empty output)",
    "failed_moves": "Failed moves of converted file (original kept)",
    "failed_deletions": "Failed deletions (both files remain, manual cleanup needed)",
    "skipped_target": "Skipped (already target codec)",
    "skipped_already_converted": "Skipped (converted file already exists)",
    "skipped_other": "Skipped (other codec)",
    "skipped_unknown": "Skipped (codec could not be determined)",
}


@dataclass
class RunStats:
    """Counters per terminal state plus byte totals of compared files."""

    checked: int = 0
    source_identified: int = 0
    skipped_target: int = 0
    skipped_already_converted: int = 0
    skipped_other: int = 0
    skipped_unknown: int = 0
    kept_after_conversion: int = 0
    reverted_not_smaller: int = 0
    failed_conversions: int = 0
    failed_moves: int = 0
    failed_deletions: int = 0
    original_bytes: int = 0
    converted_bytes: int = 0

    def record(self, result: ProcessingResult) -> None:
        """Account for one file that reached its terminal state."""
        self.checked += 1
        if result.status.is_source:
            self.source_identified += 1

        bucket = result.status.value
        setattr(self, bucket, getattr(self, bucket) + 1)

        if result.status in COMPARED_STATUSES and result.original_size is not None and result.new_size is not None:
            self.original_bytes += result.original_size
            self.converted_bytes += result.new_size

    @staticmethod
    def terminal_buckets() -> list[str]:
        """Names of the counters that partition the checked files."""
        return [status.value for status in ProcessingStatus]

    def terminal_total(self) -> int:
        """Sum over the terminal buckets; equals ``checked`` after a complete run."""
        return sum(getattr(self, bucket) for bucket in self.terminal_buckets())

    def is_balanced(self) -> bool:
        """True when every checked file landed in exactly one bucket."""
        return self.terminal_total() == self.checked

    @property
    def failures(self) -> int:
        """Files needing operator attention."""
        return self.failed_conversions + self.failed_moves + self.failed_deletions

    @property
    def total_original_mb(self) -> float:
        return self.original_bytes / BYTES_PER_MB

    @property
    def total_converted_mb(self) -> float:
        return self.converted_bytes / BYTES_PER_MB

    @property
    def percent_saved(self) -> float:
        """Share of the original bytes saved by conversion; 0 when nothing was compared."""
        if self.original_bytes <= 0:
            return 0.0
        return (1 - self.converted_bytes / self.original_bytes) * 100

    def as_report(self) -> dict[str, Any]:
        """Report as a plain mapping."""
        report: dict[str, Any] = {
            f.name: getattr(self, f.name) for f in fields(self) if f.name not in {"original_bytes", "converted_bytes"}
        }
        report["total_original_mb"] = round(self.total_original_mb, 2)
        report["total_converted_mb"] = round(self.total_converted_mb, 2)
        report["percent_saved"] = round(self.percent_saved, 2)
        return report

    def render(self, *, dry_run: bool = False) -> list[str]:
        """Human readable report lines."""
        lines = ["--- Conversion Summary ---"]
        lines.extend(f"{label}: {getattr(self, name)}" for name, label in REPORT_LABELS.items())
        lines.append(f"Total original size: {self.total_original_mb:.2f} MB")
        lines.append(f"Total converted size: {self.total_converted_mb:.2f} MB")
        lines.append(f"Space saved: {self.percent_saved:.2f}%")
        if dry_run:
            lines.append("DRY RUN COMPLETED. No actual file changes were made.")
        if not self.is_balanced():
            lines.append(f"WARNING: {self.terminal_total()} outcomes recorded for {self.checked} files checked")
        return lines

    def log_report(self, *, dry_run: bool = False) -> None:
        """Write the report to the log."""
        for line in self.render(dry_run=dry_run):
            LOG.info(line)
