"""Entry point for ``python -m hevc_shrink``."""

import sys

from .cli.main import main

if __name__ == "__main__":
    sys.exit(main())
