"""Main CLI interface for hevc-shrink."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

from ..config.constants import (
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_OK,
    LIBX265_PRESETS,
    LOG_DATE_FORMAT,
    LOG_FILE_FORMAT,
    VERBOSE_LOGGING_THRESHOLD,
)
from ..core import ConfigManager, ConfigurationError, FFmpegError, ProcessingOptions, with_config_overrides
from .commands import ConvertCommands, UtilityCommands

if TYPE_CHECKING:
    from types import FrameType

LOG = logging.getLogger(__name__)


def _raise_keyboard_interrupt(signum: int, _frame: FrameType | None) -> None:
    """Route SIGTERM through the same cleanup path as Ctrl+C."""
    raise KeyboardInterrupt(f"Received signal {signum}")


class ShrinkCLI:
    """Main CLI interface."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_manager = ConfigManager(config_path)
        self.convert_commands = ConvertCommands(self.config_manager)
        self.utility_commands = UtilityCommands(self.config_manager)

    @staticmethod
    def setup_logging(verbosity: int, log_level: str = "INFO", log_file: str | None = None) -> None:
        """
        Configure the console handler from ``verbosity`` and the log file from ``log_level``.

        The log file gets the full audit trail; the console stays quiet unless
        ``-v`` is given.
        """
        level_map = {
            0: logging.WARNING,
            1: logging.INFO,
            2: logging.DEBUG,
        }
        console_level = level_map.get(verbosity, logging.DEBUG)
        file_level = logging.getLevelName(log_level.upper())
        if not isinstance(file_level, int):
            file_level = logging.INFO

        # Setup enhanced logging format
        log_format = (
            "%(levelname)s: %(name)s: %(message)s"
            if verbosity >= VERBOSE_LOGGING_THRESHOLD
            else "%(levelname)s: %(message)s"
        )
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(console_level)
        console.setFormatter(logging.Formatter(log_format))
        handlers: list[logging.Handler] = [console]

        file_handler = None
        if log_file:
            try:
                file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            except OSError as e:
                print(f"Warning: cannot open log file {log_file}: {e}", file=sys.stderr)
            else:
                file_handler.setLevel(file_level)
                file_handler.setFormatter(logging.Formatter(LOG_FILE_FORMAT, datefmt=LOG_DATE_FORMAT))
                handlers.append(file_handler)

        logging.basicConfig(level=min(console_level, file_level), handlers=handlers, force=True)

        if file_handler is not None:
            # Header only goes to the file, the console would just get noise
            file_handler.stream.write(f"--- Log Start {time.strftime(LOG_DATE_FORMAT)} ---\n")
            file_handler.flush()

        # Set FFmpeg logs to higher level to reduce noise
        if verbosity < VERBOSE_LOGGING_THRESHOLD:
            logging.getLogger("hevc_shrink.core.ffmpeg").setLevel(logging.INFO)

    def build_parser(self) -> argparse.ArgumentParser:
        """Build the argument parser."""
        parser = argparse.ArgumentParser(
            prog="hevc-shrink",
            description="Convert H.264 videos to HEVC and keep whichever file is smaller",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=f"""
Examples:
  # Software encoding, preview only
  hevc-shrink --dry-run convert /path/to/videos

  # GPU encoding with a lower quality value (better quality, bigger files)
  hevc-shrink convert /path/to/videos --encoder gpu -q 24

  # Remove temp files left behind by a killed run
  hevc-shrink cleanup /path/to/videos

CPU presets: {", ".join(LIBX265_PRESETS)}
            """,
        )

        # Global options
        parser.add_argument(
            "-v",
            "--verbose",
            action="count",
            default=0,
            help="Increase verbosity (-v for info, -vv for debug)",
        )
        parser.add_argument("--config", type=Path, help="Path to configuration file")
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be done without actually doing it",
        )
        parser.add_argument("--log-level", help="Log file level: DEBUG, INFO, WARNING or ERROR")
        parser.add_argument("--log-file", help="Write the conversion log to this file")

        # Subcommands
        subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")
        self.convert_commands.add_subcommands(subparsers)
        self.utility_commands.add_subcommands(subparsers)

        return parser

    @staticmethod
    def create_processing_options(args: argparse.Namespace) -> ProcessingOptions:
        """Create processing options from CLI arguments."""
        extensions = getattr(args, "extensions", None)
        return ProcessingOptions(
            encoder_type=getattr(args, "encoder", None),
            quality=getattr(args, "quality", None),
            cpu_preset=getattr(args, "preset", None),
            device=getattr(args, "device", None),
            extensions=extensions.split(",") if extensions else None,
            output_dir=getattr(args, "output_dir", None),
            keep_originals=getattr(args, "keep_originals", False),
            dry_run=getattr(args, "dry_run", False),
            log_level=getattr(args, "log_level", None),
            log_file=getattr(args, "log_file", None),
            audit_csv=getattr(args, "audit_csv", None),
        )

    def _use_config(self, config_path: Path) -> None:
        self.config_manager = ConfigManager(config_path)
        self.convert_commands.config_manager = self.config_manager
        self.utility_commands.config_manager = self.config_manager

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parser = self.build_parser()
        parsed_args = parser.parse_args(args)

        # Update config manager if custom config provided
        if getattr(parsed_args, "config", None):
            self._use_config(parsed_args.config)

        processing_options = self.create_processing_options(parsed_args)
        previous_handler = signal.signal(signal.SIGTERM, _raise_keyboard_interrupt)

        try:
            # Use configuration context for temporary overrides
            with with_config_overrides(self.config_manager) as config_mgr:
                config_mgr.apply_processing_options(processing_options)
                settings = config_mgr.resolved()
                self.setup_logging(parsed_args.verbose, settings.global_.log_level, settings.global_.log_file)

                # Route to appropriate command handler
                if parsed_args.command == "convert":
                    return self.convert_commands.handle_command(parsed_args)
                if parsed_args.command in {"cleanup", "info"}:
                    return self.utility_commands.handle_command(parsed_args)
                parser.error(f"Unknown command: {parsed_args.command}")

        except KeyboardInterrupt:
            LOG.warning("Operation cancelled by user")
            return EXIT_INTERRUPTED
        except (ConfigurationError, FFmpegError) as e:
            LOG.error("%s", e)  # noqa: TRY400
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_FAILURE
        finally:
            signal.signal(signal.SIGTERM, previous_handler)

        return EXIT_OK


def main() -> int:
    """Entry point for the CLI."""
    cli = ShrinkCLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
