#!/usr/bin/env python3
"""
Jotter CLI entry point.

Usage:
    python cli.py --help
    python cli.py notes list --verbose
    python cli.py backup export notes-backup.json
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from jotter.cli.app import app

if __name__ == "__main__":
    app()
