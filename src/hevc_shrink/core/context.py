"""Per-run state handed to every stage of the conversion pipeline."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from ..config.constants import RUN_TOKEN_BYTES, TEMP_MARKER
from .audit import AuditLog
from .crash_guard import CrashGuard
from .ffmpeg import FFmpegProcessor
from .file_manager import FileManager
from .stats import RunStats

if TYPE_CHECKING:
    from ..config import Settings


def new_run_token() -> str:
    """Random token distinguishing this run's temp artifacts from another run's."""
    return secrets.token_hex(RUN_TOKEN_BYTES)


@dataclass
class RunContext:
    """Everything a run shares across files: settings, guard, counters and collaborators."""

    settings: Settings
    root: Path
    ffmpeg: FFmpegProcessor
    file_manager: FileManager
    guard: CrashGuard
    stats: RunStats = field(default_factory=RunStats)
    audit: AuditLog = field(default_factory=AuditLog)
    run_token: str = field(default_factory=new_run_token)

    @classmethod
    def create(cls, settings: Settings, root: Path, ffmpeg: FFmpegProcessor | None = None) -> RunContext:
        """Build a context wired for ``settings``."""
        dry_run = settings.conversion.dry_run
        audit_csv = settings.global_.audit_csv
        return cls(
            settings=settings,
            root=root,
            ffmpeg=ffmpeg or FFmpegProcessor(timeout=settings.encoder.timeout),
            file_manager=FileManager(dry_run=dry_run),
            guard=CrashGuard(dry_run=dry_run),
            audit=AuditLog(Path(audit_csv) if audit_csv else None, dry_run=dry_run),
        )

    @property
    def dry_run(self) -> bool:
        """Whether filesystem mutations and encodes are simulated."""
        return self.settings.conversion.dry_run

    def final_output_path(self, source_path: Path) -> Path:
        """Where the converted version of ``source_path`` ends up."""
        conversion = self.settings.conversion
        name = f"{source_path.stem}{conversion.output_suffix}{conversion.output_extension}"

        if conversion.output_dir is None:
            return source_path.parent / name

        try:
            relative_dir = source_path.parent.relative_to(self.root)
        except ValueError:
            relative_dir = Path()
        return conversion.output_dir / relative_dir / name

    def temp_output_path(self, final_output_path: Path) -> Path:
        """Temp artifact name: marker, run token, then the final name so ffmpeg sees the container."""
        return final_output_path.with_name(f"{TEMP_MARKER}{self.run_token}-{final_output_path.name}")
