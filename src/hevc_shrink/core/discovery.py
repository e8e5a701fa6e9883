"""Discovery of candidate video files under a root directory."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..config.constants import TEMP_MARKER
from ..config.settings import normalize_extensions
from .base import CandidateFile, ConfigurationError

LOG = logging.getLogger(__name__)


def discover_candidates(root: Path, extensions: list[str] | tuple[str, ...] | str) -> list[CandidateFile]:
    """
    Find every file under ``root`` whose extension is in the allowlist.

    Args:
        root: Directory to walk recursively
        extensions: Allowed extensions, matched case-insensitively

    Returns:
        Candidates sorted by full path so runs are reproducible

    Raises:
        ConfigurationError: If the allowlist is empty or ``root`` is not a directory

    """
    allowed = set(normalize_extensions(extensions))
    if not allowed:
        msg = "Video extension list is empty; nothing can be matched"
        raise ConfigurationError(msg)

    if not root.is_dir():
        msg = f"Input directory does not exist or is not a directory: {root}"
        raise ConfigurationError(msg, file_path=root)

    LOG.debug("Searching for files in '%s' with extensions: %s", root, ", ".join(sorted(allowed)))

    candidates = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            if name.startswith(TEMP_MARKER):
                continue

            extension = os.path.splitext(name)[1].lstrip(".").lower()
            if extension not in allowed:
                continue

            path = Path(dirpath) / name
            try:
                if not path.is_file():
                    continue
                size = path.stat().st_size
            except OSError as e:
                LOG.warning("Cannot read %s, ignoring it: %s", path, e)
                continue

            candidates.append(CandidateFile(path=path, size_bytes=size, extension=extension))

    candidates.sort(key=lambda candidate: str(candidate.path))
    LOG.info("Found %d potential video file(s) to check in %s", len(candidates), root)
    return candidates
