"""CLI command modules."""

from .convert import ConvertCommands
from .utils import UtilityCommands

__all__ = ["ConvertCommands", "UtilityCommands"]
