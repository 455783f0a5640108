"""Launcher for the daily backup run.

Usage:
    python run.py
    python run.py --config /root/backups/conf/config.json
    python run.py --config config/config.json --allow-non-root --json
"""

import sys

from tarrotate.cli import main

if __name__ == "__main__":
    sys.exit(main())
