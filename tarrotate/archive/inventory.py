"""Structured view of the archives sitting in a backup directory."""

import logging
import os
import stat
from dataclasses import dataclass
from datetime import date, datetime

from tarrotate.archive.naming import parse_archive_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Archive:
    """One archive file on disk.

    ``mtime`` is the creation timestamp: the file's modification time is
    the only timestamp the file system reliably keeps.
    """
    path: str
    prefix: str
    archive_date: date
    extension: str
    mtime: datetime
    size_bytes: int

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def sort_key(self) -> tuple[datetime, str]:
        return self.mtime, self.name

    def calendar_age(self, now: datetime) -> int:
        """Whole calendar days between the archive's mtime and ``now``."""
        return (now.date() - self.mtime.date()).days


def archive_from_path(path: str, prefix: str) -> Archive | None:
    """Build an Archive for ``path``; None if it is not one of ours.

    Only regular files (not symlinks) with a matching name qualify.
    """
    parsed = parse_archive_name(os.path.basename(path), prefix)
    if parsed is None:
        return None
    try:
        st = os.lstat(path)
    except FileNotFoundError:
        logger.debug("Archive vanished before stat: %s", path)
        return None
    if not stat.S_ISREG(st.st_mode):
        return None
    archive_date, ext = parsed
    return Archive(
        path=path,
        prefix=prefix,
        archive_date=archive_date,
        extension=ext,
        mtime=datetime.fromtimestamp(st.st_mtime),
        size_bytes=st.st_size,
    )


def scan_archives(directory: str, prefix: str) -> list[Archive]:
    """List this prefix's archives directly inside ``directory``, oldest first."""
    archives = []
    with os.scandir(directory) as entries:
        for entry in entries:
            archive = archive_from_path(entry.path, prefix)
            if archive is not None:
                archives.append(archive)
    archives.sort(key=Archive.sort_key)
    logger.debug("Found %d archive(s) in %s", len(archives), directory)
    return archives
