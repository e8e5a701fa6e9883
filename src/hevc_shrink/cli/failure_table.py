"""Failure table shown at the end of a conversion run."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..core import ProcessingStatus

if TYPE_CHECKING:
    from ..core import ProcessingResult

# Constants for table formatting
MAX_FILENAME_LENGTH = 37
FILENAME_TRUNCATE_LENGTH = 34
MAX_ERROR_MSG_LENGTH = 26
ERROR_MSG_TRUNCATE_LENGTH = 23

STATUS_LABELS = {
    ProcessingStatus.FAILED_CONVERSION: "conversion",
    ProcessingStatus.FAILED_MOVE: "move",
    ProcessingStatus.FAILED_DELETION: "deletion",
}

TIPS = {
    ProcessingStatus.FAILED_CONVERSION: "Check GPU drivers, disk space, or try --encoder cpu",
    ProcessingStatus.FAILED_MOVE: "Check permissions and free space of the output directory",
    ProcessingStatus.FAILED_DELETION: "Both files remain for these entries; remove one by hand",
}


def print_failure_table(failed_results: list[ProcessingResult], media_type: str = "video") -> None:
    """
    Print a simple table showing conversion failures.

    Args:
        failed_results: Results whose status is one of the failure buckets
        media_type: Noun used in the heading

    """
    if not failed_results:
        return

    print("\n" + "=" * 80)
    print(f"{f'{media_type.upper()} CONVERSION FAILURES':^80}")
    print("=" * 80)
    print(f"Total failed: {len(failed_results)} files\n")

    print(f"{'FILE':<40} | {'STAGE':<10} | {'ERROR':<26}")
    print("-" * 80)

    for result in failed_results:
        # Truncate long file names
        filename = result.source_file.name
        if len(filename) > MAX_FILENAME_LENGTH:
            filename = filename[:FILENAME_TRUNCATE_LENGTH] + "..."

        # Truncate long error messages
        error_msg = result.message or "Unknown error"
        if len(error_msg) > MAX_ERROR_MSG_LENGTH:
            error_msg = error_msg[:ERROR_MSG_TRUNCATE_LENGTH] + "..."

        stage = STATUS_LABELS.get(result.status, result.status.value)
        print(f"{filename:<40} | {stage:<10} | {error_msg:<26}")

    print()
    for status in sorted({result.status for result in failed_results}, key=lambda s: s.value):
        if status in TIPS:
            print(f"TIP ({STATUS_LABELS[status]}): {TIPS[status]}")
    print()
