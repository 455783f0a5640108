"""Exclusive per-directory run lock.

Two runs against the same daily directory would both export and purge,
so a run takes ``.<prefix>.lock`` in the daily directory before touching
anything. Exclusion comes from an ``flock`` held on the open file for the
whole run; the kernel drops it when the owner exits, however it exits,
so there is no stale lock to break. The file itself stays in place
between runs. While held it contains the owner's PID, which is only
used in messages.
"""

import fcntl
import logging
import os

from tarrotate.errors import LockError

logger = logging.getLogger(__name__)


def lock_path_for(directory: str, prefix: str) -> str:
    return os.path.join(directory, f".{prefix}.lock")


class RunLock:
    """Context manager around an flock'd lock file.

    Usage::

        with RunLock(daily_dir, "backup"):
            ...  # export, purge, build
    """

    def __init__(self, directory: str, prefix: str):
        self.path = lock_path_for(directory, prefix)
        self._fd: int | None = None

    def _read_owner(self) -> int | None:
        try:
            with open(self.path) as f:
                return int(f.read().strip() or 0) or None
        except (OSError, ValueError):
            return None

    def acquire(self):
        fd = os.open(self.path, os.O_CREAT | os.O_RDWR, 0o600)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            raise LockError(self.path, self._read_owner()) from None
        except OSError:
            os.close(fd)
            raise

        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())
        self._fd = fd
        logger.debug("Acquired run lock %s", self.path)

    def release(self):
        if self._fd is None:
            return
        try:
            os.ftruncate(self._fd, 0)
        except OSError as exc:
            logger.warning("Could not clear run lock %s: %s", self.path, exc)
        finally:
            # Closing the descriptor drops the flock
            os.close(self._fd)
            self._fd = None
        logger.debug("Released run lock %s", self.path)

    @property
    def held(self) -> bool:
        return self._fd is not None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
