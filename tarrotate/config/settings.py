"""Backup rotation defaults, naming formats, and exit codes."""

import os

# Default location of the backup hierarchy (conf/, log/, <prefix>.daily/ ...)
DEFAULT_BASE_DIR = os.path.join(os.path.expanduser("~"), "backups")

DEFAULT_FILE_PREFIX = "backup"
DEFAULT_EXPORT_DAY = "Fri"
DEFAULT_COMPRESSION = "bz2"

# Only archives strictly older than this are candidates for weekly export
EXPORT_MIN_AGE_DAYS = 6

# Exporting is only meaningful when retention is at least a full week
MIN_MEANINGFUL_RETENTION_DAYS = 7

# Patterns in include/exclude lists are relative to this root
DEFAULT_ARCHIVE_ROOT = "/"

# Hardcoded binary path; the run executes as root
DEFAULT_TAR_BINARY = "/bin/tar"
TAR_BASE_ARGS = ["--totals", "-c", "-v"]

# compression setting -> (tar flag, archive extension)
COMPRESSION_OPTIONS = {
    "bz2": ("-j", "tbz"),
    "gz": ("-z", "tgz"),
    "none": (None, "tar"),
}
COMPRESSION_ALIASES = {
    "bzip2": "bz2",
    "gzip": "gz",
}
ARCHIVE_EXTENSIONS = ("tbz", "tgz", "tar")

DAYS_OF_WEEK = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

# Date format embedded in archive and log names
ARCHIVE_DATE_FORMAT = "%Y-%m-%d"

INCLUDE_CONF_NAME = "backup.include.conf"
EXCLUDE_CONF_NAME = "backup.exclude.conf"
COMMENT_PREFIX = "#"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Exit codes; schedulers may alert on these differently
EXIT_OK = 0
EXIT_NOT_ROOT = 1
EXIT_CONFIG_INVALID = 10
EXIT_EXPORT_DAY_INVALID = 15
EXIT_LOCKED = 20
EXIT_BUILD_FAILED = 30
