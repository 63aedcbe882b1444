#!/usr/bin/env python3
"""
Decode a war3map.wtg file and print its variable, trigger and category counts.

Usage:
    uv run python scripts/validate_wtg.py INPUT [--trigger-data FILE] [--max-depth N]
"""

from __future__ import annotations

import sys

from wtgcodec.cli import main

if __name__ == '__main__':
    sys.exit(main(['validate', *sys.argv[1:]]))
