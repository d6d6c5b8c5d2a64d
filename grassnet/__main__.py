"""
GrassNet entry point.

Run with: python -m grassnet IMAGE [IMAGE ...] [--output DIR]
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
