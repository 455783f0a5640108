"""Per-run log files.

Each run writes two files into the log directory:

    <prefix>.<YYYY-MM-DD>.log   everything at the configured level
    <prefix>.<YYYY-MM-DD>.err   ERROR and above only

The .log file is appended to across same-day runs. The .err file starts
empty on every run and is removed at the end when nothing was written to
it, so its presence means that run recorded at least one error.
"""

import logging
import os
from datetime import date

from tarrotate.archive.naming import log_name
from tarrotate.config.settings import LOG_FORMAT

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "tarrotate"


class RunLog:
    def __init__(self, log_dir: str, prefix: str, day: date,
                 level: int = logging.INFO, logger_name: str = PACKAGE_LOGGER):
        self.log_dir = log_dir
        self.log_path = os.path.join(log_dir, log_name(prefix, day, "log"))
        self.error_path = os.path.join(log_dir, log_name(prefix, day, "err"))
        self.level = level
        self._logger = logging.getLogger(logger_name)
        self._handlers: list[logging.Handler] = []
        self._previous_level = self._logger.level

    def open(self):
        os.makedirs(self.log_dir, exist_ok=True)
        formatter = logging.Formatter(LOG_FORMAT)

        log_handler = logging.FileHandler(self.log_path)
        log_handler.setLevel(self.level)
        log_handler.setFormatter(formatter)

        # Truncated per run; .log keeps appending
        err_handler = logging.FileHandler(self.error_path, mode="w")
        err_handler.setLevel(logging.ERROR)
        err_handler.setFormatter(formatter)

        for handler in (log_handler, err_handler):
            self._logger.addHandler(handler)
            self._handlers.append(handler)
        if self._logger.level == logging.NOTSET or self._logger.level > self.level:
            self._logger.setLevel(self.level)
        logger.debug("Logging to %s and %s", self.log_path, self.error_path)
        return self

    def close(self) -> bool:
        """Detach the file handlers; return True if the .err file was kept."""
        for handler in self._handlers:
            self._logger.removeHandler(handler)
            handler.close()
        self._handlers.clear()
        self._logger.setLevel(self._previous_level)

        try:
            if os.path.getsize(self.error_path) == 0:
                os.remove(self.error_path)
                return False
        except FileNotFoundError:
            return False
        return True

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
