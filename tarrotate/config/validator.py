"""Pre-flight configuration checks.

Every check runs so that one pass reports every problem. Nothing here
creates, moves or deletes files: a failed validation aborts the run
before the backup directories are touched.
"""

import logging
import os
from dataclasses import dataclass

from tarrotate.config.loader import Config
from tarrotate.config.settings import (
    COMMENT_PREFIX,
    COMPRESSION_ALIASES,
    COMPRESSION_OPTIONS,
    DAYS_OF_WEEK,
    MIN_MEANINGFUL_RETENTION_DAYS,
)
from tarrotate.errors import (
    EMPTY_INCLUDE,
    INVALID_COMPRESSION,
    INVALID_EXPORT_DAY,
    MISSING_DIR,
    ConfigError,
    ConfigProblem,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidatedConfig:
    config: Config
    compression: str
    file_extension: str
    tar_flag: str | None
    include_list: tuple[str, ...]
    exclude_list: tuple[str, ...]


def read_path_list(path: str | None) -> list[str]:
    """Read one path pattern per line.

    Blank lines and ``#`` comments are dropped, and any leading ``/`` is
    stripped so patterns stay relative to the archive root. A missing
    file reads as an empty list.
    """
    if not path or not os.path.isfile(path):
        return []
    patterns = []
    with open(path) as f:
        for line in f:
            entry = line.strip()
            if not entry or entry.startswith(COMMENT_PREFIX):
                continue
            entry = entry.lstrip("/")
            if entry:
                patterns.append(entry)
    return patterns


def normalize_compression(value: str) -> str | None:
    name = COMPRESSION_ALIASES.get(value.lower(), value.lower())
    return name if name in COMPRESSION_OPTIONS else None


def validate_config(config: Config) -> ValidatedConfig:
    """Check a loaded Config; raise ConfigError listing every problem."""
    problems: list[ConfigProblem] = []

    for label, path in (("daily_dir", config.daily_dir), ("weekly_dir", config.weekly_dir)):
        if not os.path.isdir(path):
            problems.append(ConfigProblem(
                MISSING_DIR, f"{label} does not exist: {path}",
            ))

    include_list = read_path_list(config.include_conf)
    if not include_list:
        problems.append(ConfigProblem(
            EMPTY_INCLUDE,
            f"include list is blank or non-existent: {config.include_conf}",
        ))

    compression = normalize_compression(config.compression)
    if compression is None:
        problems.append(ConfigProblem(
            INVALID_COMPRESSION,
            f"compression has incorrect value: {config.compression!r} "
            f"(expected one of {', '.join(COMPRESSION_OPTIONS)})",
        ))

    if config.export_day not in DAYS_OF_WEEK:
        problems.append(ConfigProblem(
            INVALID_EXPORT_DAY,
            f"export_day has incorrect value: {config.export_day!r} "
            f"(expected one of {'|'.join(DAYS_OF_WEEK)})",
        ))

    if problems:
        raise ConfigError(problems)

    if (config.retention_days is not None
            and config.retention_days < MIN_MEANINGFUL_RETENTION_DAYS):
        logger.warning(
            "retention_days=%d is below %d; no archive will ever be old "
            "enough for weekly export",
            config.retention_days, MIN_MEANINGFUL_RETENTION_DAYS,
        )

    tar_flag, extension = COMPRESSION_OPTIONS[compression]
    return ValidatedConfig(
        config=config,
        compression=compression,
        file_extension=extension,
        tar_flag=tar_flag,
        include_list=tuple(include_list),
        exclude_list=tuple(read_path_list(config.exclude_conf)),
    )
