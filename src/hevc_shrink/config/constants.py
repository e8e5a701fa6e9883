"""
System constants that should never change.

These are technical/system limits, not user preferences.
User-configurable values should go in config.yaml instead.
"""

# Logging
VERBOSE_LOGGING_THRESHOLD = 2  # -vv switches to debug output with logger names
LOG_FILE_FORMAT = "%(asctime)s [%(levelname)s] - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Temp artifacts left behind by a crashed run start with this marker
TEMP_MARKER = ".hevc-shrink-"
RUN_TOKEN_BYTES = 4  # 8 hex characters

# Encoder identifiers
SOFTWARE_ENCODER = "libx265"
HARDWARE_ENCODERS = ("hevc_nvenc", "hevc_vaapi", "hevc_qsv", "hevc_amf")
LIBX265_PRESETS = (
    "ultrafast",
    "superfast",
    "veryfast",
    "faster",
    "fast",
    "medium",
    "slow",
    "slower",
    "veryslow",
)
MIN_QUALITY_VALUE = 0
MAX_QUALITY_VALUE = 51

# Size reporting
BYTES_PER_MB = 1024 * 1024

# Probe limits
PROBE_TIMEOUT_SECONDS = 30
ENCODER_LIST_TIMEOUT_SECONDS = 10

# Exit codes
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130
