"""Filesystem primitives used by the executor and the retention policy."""

from __future__ import annotations

import logging
import shutil
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .base import ProcessingError

if TYPE_CHECKING:
    from pathlib import Path

LOG = logging.getLogger(__name__)


@dataclass
class FileOperation:
    """A filesystem mutation performed (or simulated) during the session."""

    operation_type: str
    source_path: Path
    target_path: Path | None = None
    success: bool = False
    simulated: bool = False
    timestamp: float = 0.0

    def __post_init__(self) -> None:
        """Set timestamp if not provided."""
        if self.timestamp == 0.0:
            self.timestamp = time.time()


class FileManager:
    """Size queries, moves and deletes; in dry-run mode mutations are only logged."""

    def __init__(self, *, dry_run: bool = False) -> None:
        """Initialize file manager."""
        self.dry_run = dry_run
        self.session_operations: list[FileOperation] = []

    @staticmethod
    def size(file_path: Path) -> int:
        """Size in bytes, 0 when the file is missing or unreadable."""
        try:
            return file_path.stat().st_size if file_path.is_file() else 0
        except OSError as e:
            LOG.debug("Could not stat %s: %s", file_path, e)
            return 0

    def ensure_directory(self, directory: Path) -> None:
        """Create ``directory`` and its parents if needed."""
        if directory.is_dir():
            return
        if self.dry_run:
            LOG.info("DRY RUN: Would create directory %s", directory)
            return

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Could not create directory {directory}: {e}"
            raise ProcessingError(msg, file_path=directory, cause=e) from e
        LOG.debug("Created directory %s", directory)

    def move(self, source_path: Path, target_path: Path) -> FileOperation:
        """Move ``source_path`` onto ``target_path``, replacing an existing target."""
        if self.dry_run:
            LOG.info("DRY RUN: Would move '%s' to '%s'", source_path, target_path)
            return self._record("move", source_path, target_path, success=True, simulated=True)

        try:
            shutil.move(source_path, target_path)
        except (OSError, shutil.Error) as e:
            self._record("move", source_path, target_path, success=False)
            msg = f"Failed to move {source_path} to {target_path}: {e}"
            raise ProcessingError(msg, file_path=source_path, cause=e) from e

        LOG.debug("Moved '%s' to '%s'", source_path, target_path)
        return self._record("move", source_path, target_path, success=True)

    def delete(self, file_path: Path) -> FileOperation:
        """Delete ``file_path``; a file that is already gone counts as deleted."""
        if self.dry_run:
            LOG.info("DRY RUN: Would delete '%s'", file_path)
            return self._record("delete", file_path, success=True, simulated=True)

        try:
            file_path.unlink(missing_ok=True)
        except OSError as e:
            self._record("delete", file_path, success=False)
            msg = f"Failed to delete {file_path}: {e}"
            raise ProcessingError(msg, file_path=file_path, cause=e) from e

        LOG.debug("Deleted '%s'", file_path)
        return self._record("delete", file_path, success=True)

    def remove_quietly(self, file_path: Path) -> bool:
        """Best-effort removal of a temp artifact; failures are logged, not raised."""
        try:
            self.delete(file_path)
        except ProcessingError as e:
            LOG.warning("Could not remove temporary file %s: %s", file_path, e.cause or e)
            return False
        return True

    def _record(
        self,
        operation_type: str,
        source_path: Path,
        target_path: Path | None = None,
        *,
        success: bool,
        simulated: bool = False,
    ) -> FileOperation:
        operation = FileOperation(
            operation_type=operation_type,
            source_path=source_path,
            target_path=target_path,
            success=success,
            simulated=simulated,
        )
        self.session_operations.append(operation)
        return operation

    def get_session_summary(self) -> dict[str, Any]:
        """Get summary of file operations in this session."""
        successful_ops = [op for op in self.session_operations if op.success]
        failed_ops = [op for op in self.session_operations if not op.success]

        return {
            "total_operations": len(self.session_operations),
            "successful_operations": len(successful_ops),
            "failed_operations": len(failed_ops),
            "simulated_operations": len([op for op in self.session_operations if op.simulated]),
            "operations": self.session_operations,
        }
