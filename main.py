#!/usr/bin/env python3
"""Bleep — entry point.

Run with:
    python main.py --list
    python -m bleep PROGRAM_ID
"""

import sys

from bleep.__main__ import main


if __name__ == "__main__":
    sys.exit(main())
