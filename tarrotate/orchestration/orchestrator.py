"""Daily backup run.

Sequence:

    Init -> Validated -> [ExportPhase -> PurgePhase] -> BuildPhase -> Done
    Init -> Failed        (validation only)

Export and purge only happen on the configured export day. Validation
is the only step that aborts the run before anything is touched; export
and purge failures are recorded per file and the run carries on. The
build comes last, so a failed build leaves that run's export and purge
in place.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime

import psutil

from tarrotate.archive.builder import ArchiveBuilder
from tarrotate.archive.inventory import scan_archives
from tarrotate.archive.naming import archive_name
from tarrotate.config.loader import Config
from tarrotate.config.settings import DAYS_OF_WEEK, EXIT_OK, EXPORT_MIN_AGE_DAYS
from tarrotate.config.validator import ValidatedConfig, validate_config
from tarrotate.errors import BuildError, ConfigError, LockError
from tarrotate.orchestration.run_lock import RunLock
from tarrotate.retention.exporter import export_archive
from tarrotate.retention.purger import purge_archives, select_for_purge
from tarrotate.retention.selector import select_for_export

logger = logging.getLogger(__name__)

PHASE_CONFIG = "config"
PHASE_LOCK = "lock"
PHASE_EXPORT = "export"
PHASE_PURGE = "purge"
PHASE_BUILD = "build"


@dataclass
class RunError:
    """One failure recorded during a run."""
    phase: str
    path: str | None
    message: str


@dataclass
class RunResult:
    day_of_week: str
    export_day: bool = False
    exported_archive: str | None = None
    purged_archives: list[str] = field(default_factory=list)
    built_archive: str | None = None
    errors: list[RunError] = field(default_factory=list)
    exit_code: int = EXIT_OK

    def record_error(self, phase: str, path: str | None, message: str):
        self.errors.append(RunError(phase=phase, path=path, message=message))

    @property
    def succeeded(self) -> bool:
        return self.exit_code == EXIT_OK

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def day_of_week(moment: datetime) -> str:
    """Three-letter English day name, independent of the process locale."""
    return DAYS_OF_WEEK[moment.weekday()]


class BackupOrchestrator:
    """Runs one daily backup cycle against a Config.

    Usage::

        result = BackupOrchestrator(load_config("config/config.json")).run()
        sys.exit(result.exit_code)
    """

    def __init__(self, config: Config, now: datetime | None = None,
                 builder: ArchiveBuilder | None = None):
        self.config = config
        self.now = now
        self.builder = builder or ArchiveBuilder(tar_binary=config.tar_binary)

    def run(self) -> RunResult:
        now = self.now or datetime.now()
        result = RunResult(day_of_week=day_of_week(now))
        logger.info("Day of Week: %s", result.day_of_week)

        try:
            validated = validate_config(self.config)
        except ConfigError as exc:
            for problem in exc.problems:
                logger.error("Configuration error: %s", problem.message)
                result.record_error(PHASE_CONFIG, None, problem.message)
            logger.error("Check your configuration!")
            result.exit_code = exc.exit_code
            return result

        lock = RunLock(self.config.daily_dir, self.config.file_prefix)
        try:
            lock.acquire()
        except LockError as exc:
            logger.error("Another backup run is in progress: %s", exc)
            result.record_error(PHASE_LOCK, exc.lock_path, str(exc))
            result.exit_code = exc.exit_code
            return result

        try:
            if result.day_of_week == self.config.export_day:
                result.export_day = True
                logger.info("Export Day! Searching for weekly export...")
                self._export_and_purge(validated, now, result)
            else:
                logger.info("Not export day (%s); skipping export and purge",
                            self.config.export_day)
            self._warn_on_low_space()
            self._build(validated, now, result)
        finally:
            lock.release()

        self._log_summary(result)
        return result

    def _export_and_purge(self, validated: ValidatedConfig, now: datetime,
                          result: RunResult):
        cfg = validated.config
        try:
            archives = scan_archives(cfg.daily_dir, cfg.file_prefix)
        except OSError as exc:
            logger.error("Could not list %s: %s", cfg.daily_dir, exc)
            result.record_error(PHASE_EXPORT, cfg.daily_dir, str(exc))
            return

        chosen = select_for_export(archives, now, EXPORT_MIN_AGE_DAYS)
        if chosen is None:
            logger.info("No files to export found! Continuing...")
        else:
            try:
                result.exported_archive = export_archive(chosen, cfg.weekly_dir)
            except OSError as exc:
                logger.error("Failed to export %s to %s: %s",
                             chosen.path, cfg.weekly_dir, exc)
                result.record_error(PHASE_EXPORT, chosen.path, str(exc))

        if cfg.retention_days is None:
            logger.info("retention_days not set; skipping purge")
            return

        logger.info("retention_days set to %d; purging old backups...",
                    cfg.retention_days)
        doomed = select_for_purge(archives, now, cfg.retention_days)
        removed, failures = purge_archives(doomed)
        result.purged_archives.extend(removed)
        for failure in failures:
            result.record_error(PHASE_PURGE, failure.path, failure.error)

    def _warn_on_low_space(self):
        threshold = self.config.min_free_bytes
        if not threshold:
            return
        try:
            free = psutil.disk_usage(self.config.daily_dir).free
        except OSError as exc:
            logger.warning("Could not check free space on %s: %s",
                           self.config.daily_dir, exc)
            return
        if free < threshold:
            logger.warning("Low disk space on %s: %d bytes free (threshold %d)",
                           self.config.daily_dir, free, threshold)

    def _build(self, validated: ValidatedConfig, now: datetime, result: RunResult):
        cfg = validated.config
        destination = os.path.join(
            cfg.daily_dir,
            archive_name(cfg.file_prefix, now.date(), validated.file_extension),
        )
        logger.info("Backing up files to tar archive in %s", cfg.daily_dir)
        try:
            archive = self.builder.build(
                validated.include_list,
                validated.exclude_list,
                cfg.archive_root,
                destination,
                cfg.file_prefix,
                compression=validated.compression,
            )
        except BuildError as exc:
            logger.error("Backup failed: %s", exc)
            if exc.output:
                logger.error("tar output:\n%s", exc.output.rstrip())
            result.record_error(PHASE_BUILD, destination, str(exc))
            result.exit_code = exc.exit_code
            return
        result.built_archive = archive.path

    @staticmethod
    def _log_summary(result: RunResult):
        logger.info(
            "Run finished: exported=%s purged=%d built=%s errors=%d",
            result.exported_archive, len(result.purged_archives),
            result.built_archive, len(result.errors),
        )
        for err in result.errors:
            logger.debug("Recorded %s error on %s: %s", err.phase, err.path, err.message)
