"""Tests for run accounting and audit records."""

import csv
from pathlib import Path

from hevc_shrink.core import AuditLog, ProcessingResult, ProcessingStatus, RunStats
from hevc_shrink.core.audit import AuditRecord


def result(status: ProcessingStatus, original: int | None = None, new: int | None = None) -> ProcessingResult:
    return ProcessingResult(source_file=Path("/v/a.mp4"), status=status, original_size=original, new_size=new)


def test_every_status_lands_in_exactly_one_bucket() -> None:
    stats = RunStats()
    for status in ProcessingStatus:
        stats.record(result(status))

    assert stats.checked == len(ProcessingStatus)
    assert stats.is_balanced()
    assert all(getattr(stats, bucket) == 1 for bucket in RunStats.terminal_buckets())
    # Target, other and unknown are the only non-source outcomes
    assert stats.source_identified == len(ProcessingStatus) - 3
    assert stats.failures == 3


def test_byte_sums_only_count_compared_files() -> None:
    stats = RunStats()
    stats.record(result(ProcessingStatus.KEPT_CONVERTED, 100, 60))
    stats.record(result(ProcessingStatus.REVERTED_NOT_SMALLER, 50, 55))
    stats.record(result(ProcessingStatus.SKIPPED_TARGET, 80))
    stats.record(result(ProcessingStatus.FAILED_CONVERSION, 70))

    assert stats.original_bytes == 150
    assert stats.converted_bytes == 115
    assert round(stats.percent_saved, 2) == 23.33


def test_percent_saved_without_conversions_is_zero() -> None:
    stats = RunStats()
    stats.record(result(ProcessingStatus.SKIPPED_OTHER, 10))

    assert stats.percent_saved == 0.0
    assert stats.as_report()["percent_saved"] == 0.0


def test_report_contains_every_bucket() -> None:
    stats = RunStats()
    stats.record(result(ProcessingStatus.FAILED_DELETION, 100, 60))

    report = stats.as_report()
    lines = "\n".join(stats.render())

    for bucket in RunStats.terminal_buckets():
        assert bucket in report
    assert report["failed_deletions"] == 1
    assert "Failed deletions (both files remain, manual cleanup needed): 1" in lines
    assert "Space saved: 40.00%" in lines


def test_audit_record_fields() -> None:
    kept = ProcessingResult(
        source_file=Path("/v/a.mp4"),
        status=ProcessingStatus.KEPT_CONVERTED,
        message="Converted file kept",
        output_file=Path("/v/a_h265.mp4"),
        original_size=200,
        new_size=50,
    )

    record = AuditRecord.from_result(kept)

    assert record.converted_path == "/v/a_h265.mp4"
    assert record.converted_size == 50
    assert record.reduction_percent == "75.00"
    assert record.status == "KEPT_AFTER_CONVERSION"
    assert "Size Reduction: 75.00%" in record.format()


def test_audit_record_for_skip_uses_not_available() -> None:
    record = AuditRecord.from_result(result(ProcessingStatus.SKIPPED_UNKNOWN, 10))

    assert record.converted_path == "N/A"
    assert record.converted_size == "N/A"
    assert record.reduction_percent == "N/A"


def test_dry_run_marks_simulated_outcomes() -> None:
    simulated = AuditRecord.from_result(result(ProcessingStatus.KEPT_CONVERTED, 10, 5), dry_run=True)
    skipped = AuditRecord.from_result(result(ProcessingStatus.SKIPPED_TARGET, 10), dry_run=True)

    assert simulated.status == "DRY_RUN_KEPT_AFTER_CONVERSION"
    assert skipped.status == "SKIPPED_TARGET"


def test_audit_csv_header_written_once(tmp_path: Path) -> None:
    csv_path = tmp_path / "audit.csv"
    AuditLog(csv_path).emit(result(ProcessingStatus.SKIPPED_TARGET, 10))
    AuditLog(csv_path).emit(result(ProcessingStatus.SKIPPED_OTHER, 20))

    with csv_path.open(encoding="utf-8") as f:
        rows = list(csv.reader(f))

    assert rows[0][0] == "timestamp"
    assert len(rows) == 3
