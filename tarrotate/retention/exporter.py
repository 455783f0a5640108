"""Copy a daily archive into the weekly store under the same name."""

import logging
import os
import shutil

from tarrotate.archive.inventory import Archive

logger = logging.getLogger(__name__)


def export_archive(archive: Archive, weekly_dir: str) -> str:
    """Copy ``archive`` into ``weekly_dir`` and return the new path.

    The copy keeps the archive's mtime and lands under a hidden temporary
    name first, so an interrupted copy never looks like a finished export.
    Raises OSError on failure; the daily copy is never touched.
    """
    dest = os.path.join(weekly_dir, archive.name)
    tmp = os.path.join(weekly_dir, f".{archive.name}.partial")
    try:
        shutil.copy2(archive.path, tmp)
        os.replace(tmp, dest)
    except OSError:
        try:
            os.remove(tmp)
        except OSError:
            pass
        raise
    logger.info("Exported to weekly: %s -> %s", archive.path, dest)
    return dest
