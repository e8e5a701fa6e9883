"""Configuration management for hevc-shrink."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .constants import HARDWARE_ENCODERS

LOG = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = ["mp4", "mkv", "mov", "avi", "flv", "webm", "mpg", "mpeg", "wmv"]

ENCODER_CLASS_ALIASES = {
    "cpu": "software",
    "software": "software",
    "gpu": "hardware",
    "hardware": "hardware",
}


# Configuration singleton
class _ConfigSingleton:
    """Configuration singleton holder."""

    _instance: Settings | None = None

    @classmethod
    def get_instance(cls) -> Settings:
        """Get the configuration instance."""
        if cls._instance is None:
            # Try to load from default config file (look in working directory)
            config_path = Path.cwd() / "config.yaml"
            if config_path.exists():
                cls._instance = Settings.load_from_file(config_path)
            else:
                cls._instance = Settings()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


_config_singleton = _ConfigSingleton()


def normalize_extensions(extensions: list[str] | tuple[str, ...] | str | None) -> list[str]:
    """Lower-case extensions without the leading dot, dropping blanks and duplicates."""
    if extensions is None:
        return []
    if isinstance(extensions, str):
        extensions = extensions.split(",")

    normalized: list[str] = []
    for ext in extensions:
        cleaned = str(ext).strip().lstrip(".").lower()
        if cleaned and cleaned not in normalized:
            normalized.append(cleaned)
    return normalized


def normalize_encoder_class(value: str) -> str:
    """Map the cpu/gpu aliases onto software/hardware; unknown values pass through unchanged."""
    return ENCODER_CLASS_ALIASES.get(str(value).strip().lower(), str(value))


@dataclass
class ConversionConfig:
    """What gets converted and where the results go."""

    source_codec: str = "h264"
    target_codec: str = "hevc"
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    output_suffix: str = "_h265"
    output_extension: str = ".mp4"
    output_dir: Path | None = None
    keep_originals: bool = False
    dry_run: bool = False


@dataclass
class EncoderConfig:
    """Encoder selection and rate control."""

    type: str = "software"
    quality: int = 28
    cpu_preset: str = "medium"
    device: str = "/dev/dri/renderD128"
    hardware_order: list[str] = field(default_factory=lambda: list(HARDWARE_ENCODERS))
    timeout: int | None = None


@dataclass
class GlobalConfig:
    """Global settings."""

    log_level: str = "INFO"
    log_file: str | None = "conversion_log.txt"
    audit_csv: str | None = None
    thermal_pause: bool = True


@dataclass
class Settings:
    """Main configuration class."""

    conversion: ConversionConfig = field(default_factory=ConversionConfig)
    encoder: EncoderConfig = field(default_factory=EncoderConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> Settings:
        """Load configuration from YAML file."""
        try:
            with config_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)

            return cls._from_dict(data or {})
        except (OSError, yaml.YAMLError) as e:
            LOG.warning("Failed to load config from %s: %s", config_path, e)
            return cls()

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create config from dictionary."""
        conversion_config = cls._parse_conversion_config(data.get("conversion") or {})
        encoder_config = cls._parse_encoder_config(data.get("encoder") or {})
        global_config = cls._parse_global_config(data.get("global") or {})

        return cls(conversion=conversion_config, encoder=encoder_config, global_=global_config)

    @classmethod
    def _parse_conversion_config(cls, conversion_data: dict[str, Any]) -> ConversionConfig:
        """Parse conversion configuration."""
        output_dir = conversion_data.get("output_dir")
        output_extension = str(conversion_data.get("output_extension", ".mp4"))
        if not output_extension.startswith("."):
            output_extension = f".{output_extension}"

        return ConversionConfig(
            source_codec=str(conversion_data.get("source_codec", "h264")).lower(),
            target_codec=str(conversion_data.get("target_codec", "hevc")).lower(),
            # An explicit empty list stays empty so discovery can reject it
            extensions=normalize_extensions(conversion_data.get("extensions", DEFAULT_EXTENSIONS)),
            output_suffix=str(conversion_data.get("output_suffix", "_h265")),
            output_extension=output_extension,
            output_dir=Path(output_dir).expanduser() if output_dir else None,
            keep_originals=bool(conversion_data.get("keep_originals", False)),
            dry_run=bool(conversion_data.get("dry_run", False)),
        )

    @classmethod
    def _parse_encoder_config(cls, encoder_data: dict[str, Any]) -> EncoderConfig:
        """Parse encoder configuration."""
        hardware_order = encoder_data.get("hardware_order") or list(HARDWARE_ENCODERS)
        timeout = encoder_data.get("timeout")

        try:
            quality = int(encoder_data.get("quality", 28))
        except (TypeError, ValueError):
            LOG.warning("Invalid encoder quality %r. Using 28.", encoder_data.get("quality"))
            quality = 28

        return EncoderConfig(
            type=normalize_encoder_class(encoder_data.get("type", "software")),
            quality=quality,
            cpu_preset=str(encoder_data.get("cpu_preset", "medium")).lower(),
            device=str(encoder_data.get("device", "/dev/dri/renderD128")),
            hardware_order=[str(name) for name in hardware_order],
            timeout=int(timeout) if timeout else None,
        )

    @classmethod
    def _parse_global_config(cls, global_data: dict[str, Any]) -> GlobalConfig:
        """Parse global configuration."""
        log_level = str(global_data.get("log_level", "INFO")).upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if log_level not in valid_levels:
            LOG.warning(
                "Invalid log level '%s'. Using 'INFO'. Valid options: %s",
                log_level,
                ", ".join(sorted(valid_levels)),
            )
            log_level = "INFO"

        return GlobalConfig(
            log_level=log_level,
            log_file=global_data.get("log_file", "conversion_log.txt"),
            audit_csv=global_data.get("audit_csv"),
            thermal_pause=bool(global_data.get("thermal_pause", True)),
        )


def get_config() -> Settings:
    """Get the global configuration instance."""
    return _config_singleton.get_instance()
