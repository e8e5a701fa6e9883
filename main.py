#!/usr/bin/env python3
"""Run hevc-shrink from a source checkout without installing it."""

import sys
from pathlib import Path

# Add the src directory to the Python path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from hevc_shrink.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
