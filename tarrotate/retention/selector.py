"""Pick the daily archive to promote to the weekly store.

Ages are calendar ages (date difference, not elapsed hours), so an
archive written at 23:59 is a day old one minute later. If backups have
not run for a while, the newest archive past the age floor is still the
one exported.
"""

import logging
from datetime import datetime

from tarrotate.archive.inventory import Archive
from tarrotate.config.settings import EXPORT_MIN_AGE_DAYS

logger = logging.getLogger(__name__)


def eligible_for_export(archives, now: datetime,
                        min_age_days: int = EXPORT_MIN_AGE_DAYS) -> list[Archive]:
    return [a for a in archives if a.calendar_age(now) > min_age_days]


def select_for_export(archives, now: datetime,
                      min_age_days: int = EXPORT_MIN_AGE_DAYS) -> Archive | None:
    """Return the most recent archive older than ``min_age_days``.

    Ties on mtime fall back to the file name, which embeds the date.
    Returns None when nothing is old enough.
    """
    eligible = eligible_for_export(archives, now, min_age_days)
    if not eligible:
        logger.info("No archive older than %d day(s) to export", min_age_days)
        return None
    chosen = max(eligible, key=Archive.sort_key)
    logger.info(
        "Selected %s for weekly export (age %d day(s), %d eligible)",
        chosen.name, chosen.calendar_age(now), len(eligible),
    )
    return chosen
