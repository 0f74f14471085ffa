"""
otelxray.__main__ - Entry point for running otelxray as a module.

Usage:
    python -m otelxray <input_file> [options]
"""

import sys

from otelxray.cli import main

if __name__ == "__main__":
    sys.exit(main())
