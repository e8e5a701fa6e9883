"""The ``convert`` command."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ...config.constants import EXIT_FAILURE, EXIT_OK, LIBX265_PRESETS, MAX_QUALITY_VALUE, MIN_QUALITY_VALUE
from ...config.settings import normalize_encoder_class
from ...processors import VideoProcessor
from ..failure_table import print_failure_table

if TYPE_CHECKING:
    from ...config import Settings
    from ...core import ConfigManager

LOG = logging.getLogger(__name__)

CONFIRMATION_WORD = "yes"
ENCODER_CHOICES = ("cpu", "gpu", "software", "hardware")


def _quality(value: str) -> int:
    try:
        quality = int(value)
    except ValueError as e:
        msg = f"quality must be an integer, got {value!r}"
        raise argparse.ArgumentTypeError(msg) from e
    if not MIN_QUALITY_VALUE <= quality <= MAX_QUALITY_VALUE:
        msg = f"quality must be between {MIN_QUALITY_VALUE} and {MAX_QUALITY_VALUE}"
        raise argparse.ArgumentTypeError(msg)
    return quality


def confirm(settings: Settings, root: Path) -> bool:
    """Show what is about to happen and ask for an explicit ``yes``."""
    conversion = settings.conversion
    encoder = settings.encoder
    print(f"Directory:  {root}")
    print(f"Converting: {conversion.source_codec} -> {conversion.target_codec}")
    print(f"Encoder:    {encoder.type} (quality {encoder.quality}, preset {encoder.cpu_preset})")
    print(f"Extensions: {', '.join(conversion.extensions)}")
    if conversion.dry_run:
        print("DRY RUN: nothing will be encoded, moved or deleted.")
    else:
        print("WARNING: originals are DELETED when the converted file is smaller.")
        if conversion.keep_originals:
            print("Originals will be kept (--keep-originals).")

    try:
        answer = input(f"Type '{CONFIRMATION_WORD}' to continue: ")
    except EOFError:
        return False
    return answer.strip().lower() == CONFIRMATION_WORD


def prompt_for_directory() -> Path:
    """
    Ask until an existing directory is entered.

    Raises:
        EOFError: Input was closed before a directory was given

    """
    while True:
        answer = input("Enter the directory containing H.264 videos: ").strip()
        directory = Path(answer).expanduser()
        if answer and directory.is_dir():
            return directory
        print(f"Directory not found: '{answer}'. Please enter a valid directory.")


def prompt_for_settings(settings: Settings, args: argparse.Namespace) -> dict[str, str]:
    """
    Ask for the encoder class and libx265 preset not given on the command line.

    An empty answer keeps the configured value. Returns config overrides.

    Raises:
        EOFError: Input was closed while asking

    """
    overrides: dict[str, str] = {}
    encoder_type = settings.encoder.type
    if getattr(args, "encoder", None) is None:
        while True:
            answer = input(f"Choose encoder type ({'/'.join(ENCODER_CHOICES)}) [{encoder_type}]: ").strip().lower()
            if not answer:
                break
            if answer in ENCODER_CHOICES:
                encoder_type = normalize_encoder_class(answer)
                overrides["encoder.type"] = encoder_type
                break
            print(f"Invalid encoder type. Please enter one of: {', '.join(ENCODER_CHOICES)}.")

    if encoder_type == "software" and getattr(args, "preset", None) is None:
        while True:
            answer = input(f"Choose CPU preset ({', '.join(LIBX265_PRESETS)}) [{settings.encoder.cpu_preset}]: ")
            answer = answer.strip().lower()
            if not answer:
                break
            if answer in LIBX265_PRESETS:
                overrides["encoder.cpu_preset"] = answer
                break
            print("Invalid CPU preset. Please choose from the list.")

    return overrides


class ConvertCommands:
    """Conversion command handlers."""

    def __init__(self, config_manager: ConfigManager) -> None:
        """Initialize convert commands handler."""
        self.config_manager = config_manager

    def add_subcommands(self, subparsers: argparse._SubParsersAction) -> None:
        """Add the convert command."""
        convert_parser = subparsers.add_parser("convert", help="Convert H.264 videos under a directory to HEVC")
        convert_parser.add_argument(
            "path", type=Path, nargs="?", help="Directory to process recursively (asked for when omitted)"
        )
        convert_parser.add_argument(
            "--encoder",
            choices=ENCODER_CHOICES,
            help="Encoder class (default from config: software)",
        )
        convert_parser.add_argument(
            "--quality",
            "-q",
            type=_quality,
            help=f"Quality value {MIN_QUALITY_VALUE}-{MAX_QUALITY_VALUE}, lower is better (CRF/CQ/QP)",
        )
        convert_parser.add_argument("--preset", "-p", choices=LIBX265_PRESETS, help="libx265 preset")
        convert_parser.add_argument("--device", help="Render device for VAAPI/QSV")
        convert_parser.add_argument("--extensions", "-e", help="Comma separated extensions, e.g. mp4,mkv")
        convert_parser.add_argument("--output-dir", "-o", type=Path, help="Write converted files under this root")
        convert_parser.add_argument(
            "--keep-originals", "-k", action="store_true", help="Never delete the original file"
        )
        convert_parser.add_argument("--audit-csv", help="Append one CSV row per file to this file")
        convert_parser.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")

    def handle_command(self, args: argparse.Namespace) -> int:
        """Handle conversion."""
        settings = self.config_manager.resolved()
        path = getattr(args, "path", None)
        if path is None:
            # Interactive session: ask for what the command line left out
            try:
                path = prompt_for_directory()
                for key_path, value in prompt_for_settings(settings, args).items():
                    self.config_manager.set_override(key_path, value)
            except EOFError:
                print("\nOperation cancelled.")
                return EXIT_OK
            settings = self.config_manager.resolved()
        root = path.expanduser().resolve()

        if not getattr(args, "yes", False) and not confirm(settings, root):
            print("Operation cancelled.")
            return EXIT_OK

        processor = VideoProcessor(self.config_manager)
        show_progress = None if getattr(args, "verbose", 0) == 0 else False
        results = processor.process_directory(root, show_progress=show_progress)

        context = processor.context
        if context is None:
            msg = "Conversion run finished without a run context"
            raise RuntimeError(msg)
        print()
        for line in context.stats.render(dry_run=context.dry_run):
            print(line)

        failed = [result for result in results if result.status.is_failure]
        if failed:
            print_failure_table(failed, "video")
            return EXIT_FAILURE
        return EXIT_OK
