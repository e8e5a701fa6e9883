"""Utility CLI commands."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import argparse

    from ...core import ConfigManager

from ...config.constants import EXIT_FAILURE, EXIT_OK, TEMP_MARKER
from ...core import ConfigurationError, EncoderResolver, FFmpegProcessor, FileManager, ProcessingError

LOG = logging.getLogger(__name__)


def find_leftover_artifacts(root: Path) -> list[Path]:
    """Temp files a killed run left behind, recognised by their name marker."""
    return sorted(path for path in root.rglob(f"{TEMP_MARKER}*") if path.is_file())


class UtilityCommands:
    """Utility command handlers."""

    def __init__(self, config_manager: ConfigManager) -> None:
        """Initialize utility commands handler."""
        self.config_manager = config_manager

    def add_subcommands(self, subparsers: argparse._SubParsersAction) -> None:
        """Add utility commands to parser."""
        # Cleanup command
        cleanup_parser = subparsers.add_parser("cleanup", help="Remove temp files left by an interrupted run")
        cleanup_parser.add_argument("path", type=Path, help="Path to directory")
        cleanup_parser.add_argument(
            "--dry-run", "-n", action="store_true", dest="cleanup_dry_run", help="Show what would be deleted"
        )

        # Info command
        subparsers.add_parser("info", help="Show configuration and system info")

    def handle_command(self, args: argparse.Namespace) -> int:
        """Handle utility command execution."""
        if args.command == "cleanup":
            return self._handle_cleanup(args)
        if args.command == "info":
            return self._handle_info(args)
        LOG.error("Unknown utility command: %s", args.command)
        return EXIT_FAILURE

    def _handle_cleanup(self, args: argparse.Namespace) -> int:
        """Handle leftover temp file cleanup."""
        root = args.path.expanduser()
        if not root.is_dir():
            LOG.error("Not a directory: %s", root)
            return EXIT_FAILURE

        leftovers = find_leftover_artifacts(root)
        if not leftovers:
            print(f"No leftover temp files under {root}")
            return EXIT_OK

        dry_run = bool(args.dry_run or args.cleanup_dry_run)
        file_manager = FileManager(dry_run=dry_run)
        failed = 0
        for path in leftovers:
            try:
                file_manager.delete(path)
            except ProcessingError as e:
                LOG.warning("Failed to remove %s: %s", path, e.cause or e)
                failed += 1
                continue
            print(f"{'Would remove' if dry_run else 'Removed'}: {path}")

        summary = file_manager.get_session_summary()
        LOG.info("Cleanup finished: %d removed, %d failed", summary["successful_operations"], failed)
        return EXIT_FAILURE if failed else EXIT_OK

    def _handle_info(self, _args: argparse.Namespace) -> int:
        """Handle info display."""
        settings = self.config_manager.resolved()

        print("Tools:")
        for exe in ("ffmpeg", "ffprobe", "vainfo", "nvidia-smi"):
            path = shutil.which(exe)
            print(f"  {exe:<11} {path or 'not found'}")

        config_path = self.config_manager.config_path or Path.cwd() / "config.yaml"
        print(f"\nConfig file: {config_path} ({'found' if config_path.exists() else 'missing, using defaults'})")
        print(f"  {settings.conversion.source_codec} -> {settings.conversion.target_codec}")
        print(f"  extensions: {', '.join(settings.conversion.extensions)}")
        print(f"  encoder: {settings.encoder.type}, quality {settings.encoder.quality}")

        if not shutil.which("ffmpeg"):
            return EXIT_FAILURE

        ffmpeg = FFmpegProcessor()
        try:
            spec = EncoderResolver(ffmpeg).resolve(
                settings.encoder.type,
                settings.encoder.quality,
                preset=settings.encoder.cpu_preset,
                device=settings.encoder.device,
                hardware_order=settings.encoder.hardware_order,
            )
        except ConfigurationError as e:
            print(f"\nEncoder: invalid configuration: {e}")
            return EXIT_FAILURE

        print(f"\nEncoder: {spec.describe()}")
        hevc_encoders = sorted(name for name in ffmpeg.get_available_encoders() if "265" in name or "hevc" in name)
        print(f"HEVC encoders in this FFmpeg build: {', '.join(hevc_encoders) or 'none'}")
        return EXIT_OK
