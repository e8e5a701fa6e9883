"""Configuration management for hevc-shrink."""

from __future__ import annotations

from .constants import *  # noqa: F403, F401
from .settings import (
    ConversionConfig,
    EncoderConfig,
    GlobalConfig,
    Settings,
    get_config,
    normalize_encoder_class,
    normalize_extensions,
)

__all__ = [
    "ConversionConfig",
    "EncoderConfig",
    "GlobalConfig",
    "Settings",
    "get_config",
    "normalize_encoder_class",
    "normalize_extensions",
]
