"""System load checks between encodes."""

from __future__ import annotations

import logging
import time

import psutil

LOG = logging.getLogger(__name__)

# Temperature thresholds (Celsius)
TEMP_HIGH = 85
TEMP_MODERATE = 75

CPU_LOAD_THRESHOLD = 85
COOLDOWN_SHORT_SECONDS = 1.0
COOLDOWN_LONG_SECONDS = 30.0


def _get_max_temperature() -> float:
    """Get maximum current temperature from all available sensors."""
    if not hasattr(psutil, "sensors_temperatures"):
        return 0.0

    temps = psutil.sensors_temperatures()
    if not temps:
        return 0.0

    max_temp = 0.0
    for entries in temps.values():
        for entry in entries:
            if entry.current and entry.current > max_temp:
                max_temp = entry.current
    return max_temp


def cooldown_seconds(max_temp: float, cpu_percent: float) -> float:
    """How long to pause before the next encode, 0 when the machine is cool and idle."""
    if max_temp > TEMP_HIGH:
        return COOLDOWN_LONG_SECONDS
    if max_temp > TEMP_MODERATE or cpu_percent > CPU_LOAD_THRESHOLD:
        return COOLDOWN_SHORT_SECONDS
    return 0.0


def check_thermal_throttling() -> float:
    """
    Pause briefly if the system is hot or busy before starting another encode.

    Returns:
        Seconds slept

    """
    try:
        cpu_percent = psutil.cpu_percent(interval=0.1)
        max_temp = _get_max_temperature()
    except (OSError, AttributeError):
        # Log this issue since it might indicate a real problem
        LOG.debug("Could not check thermal state")
        return 0.0

    pause = cooldown_seconds(max_temp, cpu_percent)
    if pause:
        LOG.warning(
            "System under load (CPU %.1f%%, max temperature %.1f°C), pausing %.0fs before next file",
            cpu_percent,
            max_temp,
            pause,
        )
        time.sleep(pause)
    return pause
