"""
Run an automated playthrough.

Usage:
    python -m celtic_realm --character hedge_witch --seed 7
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
