"""Encoder resolution with the hardware fallback chain."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from ..config.constants import (
    HARDWARE_ENCODERS,
    LIBX265_PRESETS,
    MAX_QUALITY_VALUE,
    MIN_QUALITY_VALUE,
    SOFTWARE_ENCODER,
)
from ..config.settings import normalize_encoder_class
from .base import ConfigurationError, EncoderSpec

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .ffmpeg import FFmpegProcessor

LOG = logging.getLogger(__name__)

# Map CPU presets to NVENC presets
NVENC_PRESET_MAP = {
    "ultrafast": "p1",
    "superfast": "p1",
    "veryfast": "p2",
    "faster": "p3",
    "fast": "p4",
    "medium": "p5",
    "slow": "p6",
    "slower": "p7",
    "veryslow": "p7",
}


def _nvidia_present(_device: str) -> bool:
    return shutil.which("nvidia-smi") is not None


def _amd_present(_device: str) -> bool:
    return shutil.which("amdgpu_top") is not None


def _render_device_present(device: str) -> bool:
    return bool(device) and Path(device).exists()


DEFAULT_PRESENCE_CHECKS: dict[str, Callable[[str], bool]] = {
    "hevc_nvenc": _nvidia_present,
    "hevc_amf": _amd_present,
    "hevc_vaapi": _render_device_present,
    "hevc_qsv": _render_device_present,
}


def quality_arguments(encoder: str, quality: int, preset: str) -> tuple[str, ...]:
    """Rate-control arguments for ``encoder``, each family names the quality knob differently."""
    value = str(quality)
    if encoder == SOFTWARE_ENCODER:
        return ("-preset", preset, "-crf", value)
    if encoder == "hevc_nvenc":
        return ("-preset", NVENC_PRESET_MAP.get(preset, "p5"), "-rc", "vbr", "-cq", value)
    if encoder == "hevc_amf":
        return ("-rc", "cqp", "-qp_i", value, "-qp_p", value)
    if encoder == "hevc_qsv":
        return ("-global_quality", value)
    if encoder == "hevc_vaapi":
        return ("-qp", value)

    msg = f"Unknown encoder '{encoder}'"
    raise ConfigurationError(msg)


def input_arguments(encoder: str, device: str) -> tuple[str, ...]:
    """Arguments that go before ``-i``; only VAAPI decodes on the device."""
    if encoder == "hevc_vaapi":
        return ("-hwaccel", "vaapi", "-hwaccel_device", device, "-hwaccel_output_format", "vaapi")
    return ()


class EncoderResolver:
    """Turns the configured encoder class into a concrete EncoderSpec."""

    def __init__(
        self,
        ffmpeg: FFmpegProcessor,
        presence_checks: dict[str, Callable[[str], bool]] | None = None,
    ) -> None:
        self.ffmpeg = ffmpeg
        self.presence_checks = presence_checks if presence_checks is not None else DEFAULT_PRESENCE_CHECKS

    def resolve(
        self,
        encoder_class: str,
        quality: int,
        preset: str = "medium",
        device: str = "",
        hardware_order: Iterable[str] = HARDWARE_ENCODERS,
    ) -> EncoderSpec:
        """
        Resolve an encoder.

        Args:
            encoder_class: ``software``/``hardware`` (``cpu``/``gpu`` accepted)
            quality: Single quality value mapped onto each encoder's own parameter
            preset: libx265 preset, also mapped onto NVENC presets
            device: Render device for VAAPI/QSV
            hardware_order: Hardware candidates, most preferred first

        Returns:
            The resolved EncoderSpec; hardware requests fall back to software when nothing is available

        Raises:
            ConfigurationError: For an unknown class, encoder, preset or out-of-range quality

        """
        requested = normalize_encoder_class(encoder_class)
        self._validate(requested, quality, preset)

        if requested == "software":
            return self._software_spec(quality, preset, requested_class=requested)

        order = tuple(hardware_order)
        unknown = [name for name in order if name not in HARDWARE_ENCODERS]
        if unknown:
            msg = f"Unknown hardware encoder(s) {', '.join(unknown)}. Known: {', '.join(HARDWARE_ENCODERS)}"
            raise ConfigurationError(msg)

        tried = []
        for encoder in order:
            tried.append(encoder)
            if self._hardware_available(encoder, device):
                LOG.info("Using %s for hardware encoding", encoder)
                return EncoderSpec(
                    encoder_class="hardware",
                    encoder=encoder,
                    quality_value=quality,
                    quality_args=quality_arguments(encoder, quality, preset),
                    preset=NVENC_PRESET_MAP.get(preset) if encoder == "hevc_nvenc" else None,
                    device=device or None,
                    input_args=input_arguments(encoder, device),
                    requested_class=requested,
                    tried=tuple(tried),
                )

        LOG.warning(
            "No supported hardware encoder found (tried %s). Falling back to software (%s).",
            ", ".join(tried) or "none",
            SOFTWARE_ENCODER,
        )
        return self._software_spec(quality, preset, requested_class=requested, fallback_used=True, tried=tuple(tried))

    def _hardware_available(self, encoder: str, device: str) -> bool:
        check = self.presence_checks.get(encoder)
        if check is None or not check(device):
            LOG.debug("%s: hardware not detected", encoder)
            return False
        if not self.ffmpeg.is_encoder_available(encoder):
            LOG.debug("%s: hardware present but not in the FFmpeg encoder list", encoder)
            return False
        return True

    @staticmethod
    def _software_spec(
        quality: int,
        preset: str,
        *,
        requested_class: str,
        fallback_used: bool = False,
        tried: tuple[str, ...] = (),
    ) -> EncoderSpec:
        return EncoderSpec(
            encoder_class="software",
            encoder=SOFTWARE_ENCODER,
            quality_value=quality,
            quality_args=quality_arguments(SOFTWARE_ENCODER, quality, preset),
            preset=preset,
            requested_class=requested_class,
            fallback_used=fallback_used,
            tried=tried,
        )

    @staticmethod
    def _validate(encoder_class: str, quality: int, preset: str) -> None:
        if encoder_class not in {"software", "hardware"}:
            msg = f"Invalid encoder type '{encoder_class}'. Use 'cpu' or 'gpu'."
            raise ConfigurationError(msg)
        if isinstance(quality, bool) or not isinstance(quality, int):
            msg = f"Quality value must be an integer, got {quality!r}"
            raise ConfigurationError(msg)
        if not MIN_QUALITY_VALUE <= quality <= MAX_QUALITY_VALUE:
            msg = f"Quality value {quality} outside {MIN_QUALITY_VALUE}-{MAX_QUALITY_VALUE}"
            raise ConfigurationError(msg)
        if preset not in LIBX265_PRESETS:
            msg = f"Invalid CPU preset '{preset}'. Choose from: {', '.join(LIBX265_PRESETS)}"
            raise ConfigurationError(msg)
