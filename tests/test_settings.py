"""Tests for YAML settings and command line overrides."""

import logging
from pathlib import Path

import pytest
import yaml

from hevc_shrink.config import Settings
from hevc_shrink.core import ConfigManager, ProcessingOptions, with_config_overrides


def write_config(path: Path, data: dict) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_defaults() -> None:
    settings = Settings()

    assert settings.conversion.source_codec == "h264"
    assert settings.conversion.target_codec == "hevc"
    assert settings.conversion.output_suffix == "_h265"
    assert settings.encoder.type == "software"
    assert settings.encoder.quality == 28
    assert settings.encoder.hardware_order == ["hevc_nvenc", "hevc_vaapi", "hevc_qsv", "hevc_amf"]
    assert settings.global_.log_file == "conversion_log.txt"


def test_load_from_file_normalizes_values(tmp_path: Path) -> None:
    path = write_config(
        tmp_path / "config.yaml",
        {
            "conversion": {"extensions": [".MP4", "mkv", "mp4"], "output_extension": "mkv", "output_dir": "out"},
            "encoder": {"type": "gpu", "quality": "24", "cpu_preset": "SLOW"},
            "global": {"log_level": "debug"},
        },
    )

    settings = Settings.load_from_file(path)

    assert settings.conversion.extensions == ["mp4", "mkv"]
    assert settings.conversion.output_extension == ".mkv"
    assert settings.conversion.output_dir == Path("out")
    assert settings.encoder.type == "hardware"
    assert settings.encoder.quality == 24
    assert settings.encoder.cpu_preset == "slow"
    assert settings.global_.log_level == "DEBUG"


def test_explicit_empty_extension_list_stays_empty(tmp_path: Path) -> None:
    path = write_config(tmp_path / "config.yaml", {"conversion": {"extensions": []}})

    assert Settings.load_from_file(path).conversion.extensions == []


def test_broken_file_falls_back_to_defaults(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("conversion: [unclosed", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        settings = Settings.load_from_file(path)

    assert settings == Settings()
    assert "Failed to load config" in caplog.text


def test_invalid_log_level_falls_back_to_info(tmp_path: Path) -> None:
    path = write_config(tmp_path / "config.yaml", {"global": {"log_level": "chatty"}})

    assert Settings.load_from_file(path).global_.log_level == "INFO"


def test_processing_options_override_file_values(config_file: Path) -> None:
    manager = ConfigManager(config_file)
    manager.apply_processing_options(
        ProcessingOptions(encoder_type="gpu", quality=20, extensions=["MKV"], keep_originals=True, dry_run=True)
    )

    settings = manager.resolved()

    assert settings.encoder.type == "hardware"
    assert settings.encoder.quality == 20
    assert settings.conversion.extensions == ["mkv"]
    assert settings.conversion.keep_originals is True
    assert settings.conversion.dry_run is True
    # The loaded settings themselves are not mutated
    assert manager.config.encoder.quality == 28


def test_override_context_is_temporary(config_file: Path) -> None:
    manager = ConfigManager(config_file)

    with with_config_overrides(manager, **{"encoder.quality": 18}) as scoped:
        assert scoped.get_value("encoder.quality") == 18
        assert scoped.resolved().encoder.quality == 18

    assert manager.get_value("encoder.quality") == 28


def test_unknown_override_is_ignored(config_file: Path, caplog: pytest.LogCaptureFixture) -> None:
    manager = ConfigManager(config_file)
    manager.set_override("encoder.bitrate", "8M")

    with caplog.at_level(logging.WARNING):
        settings = manager.resolved()

    assert not hasattr(settings.encoder, "bitrate")
    assert "encoder.bitrate" in caplog.text
