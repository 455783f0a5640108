"""Create one tar archive from include/exclude path lists.

The system ``tar`` binary does the work. Targets are stored relative to
the archive root (``/`` by default), so patterns in the lists omit the
leading separator.

tar writes into a hidden ``.<name>.partial`` file next to the
destination, which is renamed over the destination only after tar exits
cleanly. A failed run never leaves a truncated archive under the final
name.
"""

import logging
import os
import subprocess
import tempfile

from tarrotate.archive.inventory import Archive, archive_from_path
from tarrotate.archive.naming import parse_archive_name
from tarrotate.config.settings import (
    COMPRESSION_OPTIONS,
    DEFAULT_TAR_BINARY,
    TAR_BASE_ARGS,
)
from tarrotate.errors import BuildError

logger = logging.getLogger(__name__)


def partial_path(destination: str) -> str:
    directory, name = os.path.split(destination)
    return os.path.join(directory, f".{name}.partial")


def _write_list_file(patterns, directory: str, suffix: str) -> str:
    fd, path = tempfile.mkstemp(prefix=".tarrotate-", suffix=suffix, dir=directory)
    with os.fdopen(fd, "w") as f:
        for pattern in patterns:
            f.write(f"{pattern}\n")
    return path


def _remove_quietly(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not remove temporary file %s: %s", path, exc)


class ArchiveBuilder:
    """Runs tar to produce a single archive.

    Usage::

        builder = ArchiveBuilder(tar_binary="/bin/tar")
        archive = builder.build(["etc", "home/alice"], ["home/alice/.cache"],
                                "/", "/backups/backup.daily/backup.2025-02-07.tbz",
                                prefix="backup", compression="bz2")
    """

    def __init__(self, tar_binary: str = DEFAULT_TAR_BINARY):
        self.tar_binary = tar_binary

    def command(self, include_file: str, exclude_file: str | None,
                root_dir: str, output_path: str, compression: str) -> list[str]:
        tar_flag, _ = COMPRESSION_OPTIONS[compression]
        cmd = [self.tar_binary, "-C", root_dir]
        if tar_flag:
            cmd.append(tar_flag)
        if exclude_file:
            cmd += ["-X", exclude_file]
        cmd += TAR_BASE_ARGS
        cmd += ["-f", output_path, "-T", include_file]
        return cmd

    def build(
        self,
        include_list,
        exclude_list,
        root_dir: str,
        destination: str,
        prefix: str,
        compression: str = "bz2",
    ) -> Archive:
        """Archive ``include_list`` (minus ``exclude_list``) into ``destination``.

        Raises BuildError if tar cannot be started, exits non-zero, or the
        finished archive cannot be moved into place.
        """
        include_list = list(include_list)
        if not include_list:
            raise BuildError("Nothing to archive: include list is empty")
        if parse_archive_name(os.path.basename(destination), prefix) is None:
            raise BuildError(
                f"Destination {destination} does not follow the {prefix!r} naming scheme"
            )

        # Paths handed to tar must be absolute because of -C
        destination = os.path.abspath(destination)

        work_dir = os.path.dirname(destination) or "."
        tmp_output = partial_path(destination)
        include_file = exclude_file = None
        try:
            include_file = _write_list_file(include_list, work_dir, ".include")
            if exclude_list:
                logger.info("Exclude list found; applying %d pattern(s)", len(exclude_list))
                exclude_file = _write_list_file(exclude_list, work_dir, ".exclude")
        except OSError as exc:
            for path in (include_file, exclude_file):
                if path:
                    _remove_quietly(path)
            raise BuildError(f"Could not write target lists in {work_dir}: {exc}") from exc

        cmd = self.command(include_file, exclude_file, root_dir, tmp_output, compression)
        logger.info("Backing up %d target(s) to %s", len(include_list), destination)
        logger.debug("Running: %s", " ".join(cmd))

        try:
            try:
                proc = subprocess.run(
                    cmd,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    check=False,
                )
            except OSError as exc:
                _remove_quietly(tmp_output)
                raise BuildError(f"Could not start {self.tar_binary}: {exc}") from exc

            output = proc.stdout or ""
            for line in output.splitlines():
                logger.info("tar: %s", line)

            if proc.returncode != 0:
                _remove_quietly(tmp_output)
                raise BuildError(
                    f"tar exited with status {proc.returncode} building {destination}",
                    output=output,
                    returncode=proc.returncode,
                )

            try:
                os.replace(tmp_output, destination)
            except OSError as exc:
                _remove_quietly(tmp_output)
                raise BuildError(
                    f"Could not move {tmp_output} to {destination}: {exc}",
                    output=output,
                    returncode=proc.returncode,
                ) from exc
        finally:
            _remove_quietly(include_file)
            if exclude_file:
                _remove_quietly(exclude_file)

        archive = archive_from_path(destination, prefix)
        if archive is None:
            raise BuildError(f"Archive disappeared after it was written: {destination}")
        logger.info("Backup complete: %s (%d bytes)", destination, archive.size_bytes)
        return archive
