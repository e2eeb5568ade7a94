"""
cepweather.__main__ - Entry point for running cepweather as a module.

Usage:
    python -m cepweather edge
    python -m cepweather resolver --port 8081
"""

import sys

from cepweather.cli import main

if __name__ == "__main__":
    sys.exit(main())
