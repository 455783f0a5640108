"""Command-line entry point for the daily backup run.

Meant to be run once a day by cron, e.g.::

    0 6 * * * /usr/local/bin/tarrotate -c /root/backups/conf/config.json
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime

from tarrotate.config.loader import load_config
from tarrotate.config.settings import (
    DEFAULT_BASE_DIR,
    EXIT_CONFIG_INVALID,
    EXIT_NOT_ROOT,
    LOG_FORMAT,
)
from tarrotate.orchestration.orchestrator import BackupOrchestrator
from tarrotate.orchestration.run_log import RunLog

logger = logging.getLogger("tarrotate")

DEFAULT_CONFIG = os.path.join(DEFAULT_BASE_DIR, "conf", "config.json")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Daily tar backups with weekly export and retention",
    )
    parser.add_argument(
        "-c", "--config",
        default=os.environ.get("TARROTATE_CONFIG", DEFAULT_CONFIG),
        help=f"Path to config.json (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--allow-non-root",
        action="store_true",
        help="Skip the root check (for delegated permissions or testing)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the run result as JSON on stdout",
    )
    return parser


def is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    level = getattr(logging, args.log_level)

    logging.basicConfig(level=level, format=LOG_FORMAT)

    if not args.allow_non_root and not is_root():
        logger.error("You must be root to run this backup.")
        return EXIT_NOT_ROOT

    try:
        config = load_config(args.config)
    except (OSError, json.JSONDecodeError, TypeError, ValueError) as exc:
        logger.error("Could not load configuration %s: %s", args.config, exc)
        return EXIT_CONFIG_INVALID

    now = datetime.now()
    run_log = RunLog(config.log_dir, config.file_prefix, now.date(), level=level)
    try:
        run_log.open()
    except OSError as exc:
        logger.error("Could not open log files in %s: %s", config.log_dir, exc)
        return EXIT_CONFIG_INVALID

    try:
        result = BackupOrchestrator(config, now=now).run()
    finally:
        kept_errors = run_log.close()

    if kept_errors:
        logger.info("Errors were recorded in %s", run_log.error_path)
    if args.json:
        print(result.to_json())
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
