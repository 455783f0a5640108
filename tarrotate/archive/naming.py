"""Archive and log file naming.

    <prefix>.<YYYY-MM-DD>.<tbz|tgz|tar>    archives (daily and weekly)
    <prefix>.<YYYY-MM-DD>.<log|err>        per-run logs

Fixed-width ISO dates keep lexicographic and chronological order in step.
"""

import re
from datetime import date, datetime

from tarrotate.config.settings import ARCHIVE_DATE_FORMAT, ARCHIVE_EXTENSIONS


def archive_name(prefix: str, day: date, ext: str) -> str:
    return f"{prefix}.{day.strftime(ARCHIVE_DATE_FORMAT)}.{ext}"


def log_name(prefix: str, day: date, kind: str) -> str:
    return f"{prefix}.{day.strftime(ARCHIVE_DATE_FORMAT)}.{kind}"


def _archive_pattern(prefix: str) -> re.Pattern:
    exts = "|".join(re.escape(e) for e in ARCHIVE_EXTENSIONS)
    return re.compile(rf"{re.escape(prefix)}\.(\d{{4}}-\d{{2}}-\d{{2}})\.({exts})", re.ASCII)


def parse_archive_name(name: str, prefix: str) -> tuple[date, str] | None:
    """Return (date, extension) if ``name`` is one of our archives.

    Names with another prefix, an unknown extension, or an impossible
    date (2024-02-30) are not ours and return None.
    """
    match = _archive_pattern(prefix).fullmatch(name)
    if not match:
        return None
    try:
        day = datetime.strptime(match.group(1), ARCHIVE_DATE_FORMAT).date()
    except ValueError:
        return None
    return day, match.group(2)
