"""Exception types raised by the backup rotation run.

Only pre-flight and build failures are raised. Export and purge failures
are per-item and recorded on the run result instead.
"""

from dataclasses import dataclass

from tarrotate.config.settings import (
    EXIT_BUILD_FAILED,
    EXIT_CONFIG_INVALID,
    EXIT_EXPORT_DAY_INVALID,
    EXIT_LOCKED,
)

MISSING_DIR = "missing_dir"
EMPTY_INCLUDE = "empty_include"
INVALID_COMPRESSION = "invalid_compression"
INVALID_EXPORT_DAY = "invalid_export_day"


@dataclass(frozen=True)
class ConfigProblem:
    code: str
    message: str


class TarRotateError(Exception):
    """Base class for all backup rotation failures."""

    exit_code = 1


class ConfigError(TarRotateError):
    """One or more configuration checks failed before any file was touched."""

    def __init__(self, problems: list[ConfigProblem]):
        self.problems = list(problems)
        super().__init__("; ".join(p.message for p in self.problems))

    @property
    def exit_code(self) -> int:
        # A bad export day alone gets its own code
        if self.problems and all(p.code == INVALID_EXPORT_DAY for p in self.problems):
            return EXIT_EXPORT_DAY_INVALID
        return EXIT_CONFIG_INVALID


class BuildError(TarRotateError):
    """The archiving step failed; carries whatever tar printed."""

    exit_code = EXIT_BUILD_FAILED

    def __init__(self, message: str, output: str = "", returncode: int | None = None):
        self.output = output
        self.returncode = returncode
        super().__init__(message)


class LockError(TarRotateError):
    """Another run currently owns the daily directory."""

    exit_code = EXIT_LOCKED

    def __init__(self, lock_path: str, owner_pid: int | None = None):
        self.lock_path = lock_path
        self.owner_pid = owner_pid
        super().__init__(f"Run lock {lock_path} is held by pid={owner_pid}")
