"""Configuration manager layering command line overrides over the YAML settings."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..config import Settings
from ..config import get_config as _get_global_config
from ..config.settings import normalize_encoder_class, normalize_extensions

LOG = logging.getLogger(__name__)


@dataclass
class ProcessingOptions:
    """Processing options that can override configuration."""

    encoder_type: str | None = None
    quality: int | None = None
    cpu_preset: str | None = None
    device: str | None = None
    extensions: list[str] | None = None
    output_dir: Path | None = None
    keep_originals: bool | None = None
    dry_run: bool | None = None
    log_level: str | None = None
    log_file: str | None = None
    audit_csv: str | None = None


class ConfigManager:
    """Configuration manager with override and context support."""

    def __init__(self, config_path: Path | None = None) -> None:
        """
        Initialize configuration manager.

        Args:
            config_path: Optional path to config file

        """
        self.config_path = config_path
        self._config = Settings.load_from_file(config_path) if config_path else _get_global_config()
        self._overrides: dict[str, Any] = {}
        self._context_stack: list[dict[str, Any]] = []

    @property
    def config(self) -> Settings:
        """Get the base configuration."""
        return self._config

    def get_value(self, key_path: str, default: object = None) -> object:
        """Get configuration value with override support."""
        # Check overrides first
        if key_path in self._overrides:
            return self._overrides[key_path]

        # Try to get from underlying config
        try:
            value: object = self._config
            for part in key_path.split("."):
                value = getattr(value, part)
        except AttributeError:
            return default
        else:
            return value

    def set_override(self, key_path: str, value: object) -> None:
        """Set a temporary configuration override."""
        self._overrides[key_path] = value

    def push_context(self, overrides: dict[str, Any]) -> None:
        """Push a new configuration context."""
        self._context_stack.append(self._overrides.copy())
        self._overrides.update(overrides)

    def pop_context(self) -> None:
        """Pop the current configuration context."""
        if self._context_stack:
            self._overrides = self._context_stack.pop()

    def apply_processing_options(self, options: ProcessingOptions) -> None:
        """Apply processing options as configuration overrides."""
        overrides: dict[str, Any] = {}

        if options.encoder_type is not None:
            overrides["encoder.type"] = normalize_encoder_class(options.encoder_type)
        if options.quality is not None:
            overrides["encoder.quality"] = options.quality
        if options.cpu_preset is not None:
            overrides["encoder.cpu_preset"] = options.cpu_preset.lower()
        if options.device is not None:
            overrides["encoder.device"] = options.device
        if options.extensions is not None:
            overrides["conversion.extensions"] = normalize_extensions(options.extensions)
        if options.output_dir is not None:
            overrides["conversion.output_dir"] = options.output_dir
        if options.keep_originals:
            overrides["conversion.keep_originals"] = True
        if options.dry_run:
            overrides["conversion.dry_run"] = True
        if options.log_level is not None:
            overrides["global_.log_level"] = options.log_level.upper()
        if options.log_file is not None:
            overrides["global_.log_file"] = options.log_file
        if options.audit_csv is not None:
            overrides["global_.audit_csv"] = options.audit_csv

        for key, value in overrides.items():
            self.set_override(key, value)

    def resolved(self) -> Settings:
        """A copy of the settings with every active override applied."""
        settings = copy.deepcopy(self._config)
        for key_path, value in self._overrides.items():
            *parents, leaf = key_path.split(".")
            target: object = settings
            try:
                for part in parents:
                    target = getattr(target, part)
                if not hasattr(target, leaf):
                    raise AttributeError(leaf)
            except AttributeError:
                LOG.warning("Ignoring unknown configuration override '%s'", key_path)
                continue
            setattr(target, leaf, value)
        return settings


class ConfigContext:
    """Context manager for temporary configuration changes."""

    def __init__(self, config_manager: ConfigManager, overrides: dict[str, Any]) -> None:
        """
        Initialize configuration context.

        Args:
            config_manager: Configuration manager instance
            overrides: Configuration overrides to apply

        """
        self.config_manager = config_manager
        self.overrides = overrides

    def __enter__(self) -> ConfigManager:
        """Enter the configuration context."""
        self.config_manager.push_context(self.overrides)
        return self.config_manager

    def __exit__(self, _exc_type: object, _exc_val: object, _exc_tb: object) -> None:
        """Exit the configuration context."""
        self.config_manager.pop_context()


def with_config_overrides(config_manager: ConfigManager, **overrides: object) -> ConfigContext:
    """Create a context with configuration overrides."""
    return ConfigContext(config_manager, overrides)
