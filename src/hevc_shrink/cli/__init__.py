"""CLI module for hevc-shrink."""

from .commands import ConvertCommands, UtilityCommands
from .main import ShrinkCLI

__all__ = [
    "ConvertCommands",
    "ShrinkCLI",
    "UtilityCommands",
]
