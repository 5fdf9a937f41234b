"""Entry point for ``python -m jitmod``."""

import sys

from jitmod.ui.cli import main

if __name__ == "__main__":
    sys.exit(main())
