"""Tracking of the in-flight temp artifact so an interrupted run leaves nothing behind."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path
    from types import TracebackType

LOG = logging.getLogger(__name__)


class CrashGuard:
    """
    Single-slot register for the temp artifact of the job being encoded.

    Open it once for the run (``with CrashGuard(...) as guard``) and wrap each
    encode in ``guard.track(temp_path)``. The slot is armed for the duration
    of the block and any artifact still armed when the block unwinds is
    removed. Leaving the run-level context sweeps the slot one final time;
    the sweep runs once no matter how the run ends.
    """

    def __init__(self, *, dry_run: bool = False) -> None:
        self.dry_run = dry_run
        self._slot: Path | None = None
        self._swept = False

    @property
    def tracked(self) -> Path | None:
        """Path of the armed temp artifact, if any."""
        return self._slot

    def __enter__(self) -> CrashGuard:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None and issubclass(exc_type, KeyboardInterrupt):
            LOG.warning("Run interrupted, cleaning up")
        self.sweep()

    def arm(self, temp_path: Path) -> None:
        """Start tracking ``temp_path``."""
        if self._slot is not None and self._slot != temp_path:
            # Only one job runs at a time; a stale entry means a path was never resolved.
            LOG.warning("Replacing unresolved temp artifact %s with %s", self._slot, temp_path)
            self._remove(self._slot)
        self._slot = temp_path
        LOG.debug("Tracking temp artifact %s", temp_path)

    def release(self) -> None:
        """Stop tracking; the artifact was moved into place or deleted."""
        if self._slot is not None:
            LOG.debug("Released temp artifact %s", self._slot)
        self._slot = None

    @contextmanager
    def track(self, temp_path: Path) -> Iterator[Path]:
        """Arm the slot for the block and remove the artifact if it is still armed afterwards."""
        self.arm(temp_path)
        try:
            yield temp_path
        finally:
            if self._slot == temp_path:
                self._remove(temp_path)
                self._slot = None

    def sweep(self) -> None:
        """Final cleanup for the run."""
        if self._swept:
            return
        self._swept = True

        if self._slot is not None:
            self._remove(self._slot)
            self._slot = None

    def _remove(self, temp_path: Path) -> None:
        if not temp_path.exists():
            return

        if self.dry_run:
            LOG.warning("DRY RUN: Would have cleaned up temporary file: %s", temp_path)
            return

        try:
            temp_path.unlink()
        except OSError:
            LOG.exception("Failed to clean up temporary file %s", temp_path)
        else:
            LOG.warning("Cleaned up temporary file: %s", temp_path)
