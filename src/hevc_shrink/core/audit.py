"""Per-file audit records, one for every terminal state."""

from __future__ import annotations

import csv
import logging
import time
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from .base import ProcessingStatus

if TYPE_CHECKING:
    from pathlib import Path

    from .base import ProcessingResult

LOG = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

CSV_FIELDS = [
    "timestamp",
    "original_path",
    "original_size",
    "converted_path",
    "converted_size",
    "status",
    "reduction_percent",
    "notes",
]


@dataclass
class AuditRecord:
    """Audit trail entry for one file."""

    timestamp: str
    original_path: str
    original_size: int | str
    converted_path: str
    converted_size: int | str
    status: str
    reduction_percent: str
    notes: str

    @classmethod
    def from_result(cls, result: ProcessingResult, *, dry_run: bool = False) -> AuditRecord:
        """Build the record for a terminal result."""
        reduction = result.reduction_percent
        status = result.status.value.upper()
        if dry_run and result.status.is_source and result.status is not ProcessingStatus.SKIPPED_ALREADY_CONVERTED:
            status = f"DRY_RUN_{status}"

        return cls(
            timestamp=time.strftime("%Y-%m-%d %H:%M:%S"),
            original_path=str(result.source_file),
            original_size=result.original_size if result.original_size is not None else NOT_AVAILABLE,
            converted_path=str(result.output_file) if result.output_file else NOT_AVAILABLE,
            converted_size=result.new_size if result.new_size is not None else NOT_AVAILABLE,
            status=status,
            reduction_percent=f"{reduction:.2f}" if reduction is not None else NOT_AVAILABLE,
            notes=result.message,
        )

    def format(self) -> str:
        """Multi-line block for the log."""
        lines = [
            "--- Conversion Record ---",
            f"Timestamp: {self.timestamp}",
            f"Original File: {self.original_path}",
            f"Original Size: {self.original_size} bytes",
            f"Converted File Path: {self.converted_path}",
            f"Converted Size: {self.converted_size} bytes",
            f"Status: {self.status}",
        ]
        if self.notes:
            lines.append(f"Notes: {self.notes}")
        if self.reduction_percent != NOT_AVAILABLE:
            lines.append(f"Size Reduction: {self.reduction_percent}%")
        lines.append("-------------------------")
        return "\n".join(lines)


class AuditLog:
    """Emits audit records to the log and, optionally, to a CSV file."""

    def __init__(self, csv_path: Path | None = None, *, dry_run: bool = False) -> None:
        self.csv_path = csv_path
        self.dry_run = dry_run
        self.records: list[AuditRecord] = []

    def emit(self, result: ProcessingResult) -> AuditRecord:
        """Record the terminal state of one file."""
        record = AuditRecord.from_result(result, dry_run=self.dry_run)
        self.records.append(record)
        LOG.info(record.format())

        if self.csv_path is not None:
            self._append_csv(self.csv_path, record)
        return record

    def _append_csv(self, csv_path: Path, record: AuditRecord) -> None:
        write_header = not csv_path.exists() or csv_path.stat().st_size == 0
        try:
            with csv_path.open("a", newline="", encoding="utf-8") as csvfile:
                writer = csv.DictWriter(csvfile, fieldnames=CSV_FIELDS)
                if write_header:
                    writer.writeheader()
                writer.writerow(asdict(record))
        except OSError as e:
            LOG.warning("Failed to write audit record to %s: %s", csv_path, e)
