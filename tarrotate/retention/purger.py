"""Age out daily archives past the retention window."""

import logging
import os
from dataclasses import dataclass
from datetime import datetime

from tarrotate.archive.inventory import Archive

logger = logging.getLogger(__name__)


@dataclass
class PurgeError:
    """A single archive that could not be deleted."""
    path: str
    error: str


def select_for_purge(archives, now: datetime,
                     retention_days: int | None) -> list[Archive]:
    """Archives whose calendar age exceeds ``retention_days``, oldest first.

    The archive exported in the same run is included if it is old
    enough: export copies, it does not move.
    """
    if retention_days is None:
        return []
    selected = [a for a in archives if a.calendar_age(now) > retention_days]
    selected.sort(key=Archive.sort_key)
    return selected


def purge_archives(archives) -> tuple[list[str], list[PurgeError]]:
    """Delete each archive independently.

    Returns (removed paths, failures). A file that is already gone is
    neither; one failure never stops the rest.
    """
    removed: list[str] = []
    errors: list[PurgeError] = []
    for archive in archives:
        try:
            os.remove(archive.path)
        except FileNotFoundError:
            logger.debug("Already gone, skipping: %s", archive.path)
            continue
        except OSError as exc:
            logger.error("Failed to purge %s: %s", archive.path, exc)
            errors.append(PurgeError(path=archive.path, error=str(exc)))
            continue
        logger.info("Purged %s", archive.path)
        removed.append(archive.path)
    return removed, errors
