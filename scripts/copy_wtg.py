#!/usr/bin/env python3
"""
Copy a war3map.wtg file through a full decode and re-encode.

Usage:
    uv run python scripts/copy_wtg.py INPUT OUTPUT [--target-version {4,7}] [--verify]

Examples:
    # Round-trip a file and check the output decodes to the same model
    uv run python scripts/copy_wtg.py war3map.wtg out.wtg --verify
"""

from __future__ import annotations

import sys

from wtgcodec.cli import main

if __name__ == '__main__':
    sys.exit(main(['copy', *sys.argv[1:]]))
