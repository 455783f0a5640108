"""Load the JSON run configuration into an immutable Config.

Example ``config/config.json``::

    {
        "base_dir": "~/backups",
        "file_prefix": "backup",
        "export_day": "Fri",
        "retention_days": 7,
        "compression": "bz2"
    }

Directory and list-file paths default to locations under ``base_dir``
and may each be overridden. Loading never checks the file system; that
is the validator's job.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from tarrotate.config.settings import (
    DEFAULT_ARCHIVE_ROOT,
    DEFAULT_BASE_DIR,
    DEFAULT_COMPRESSION,
    DEFAULT_EXPORT_DAY,
    DEFAULT_FILE_PREFIX,
    DEFAULT_TAR_BINARY,
    EXCLUDE_CONF_NAME,
    INCLUDE_CONF_NAME,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    daily_dir: str
    weekly_dir: str
    log_dir: str
    include_conf: str
    exclude_conf: str | None = None
    file_prefix: str = DEFAULT_FILE_PREFIX
    compression: str = DEFAULT_COMPRESSION
    export_day: str = DEFAULT_EXPORT_DAY
    retention_days: int | None = None
    archive_root: str = DEFAULT_ARCHIVE_ROOT
    tar_binary: str = DEFAULT_TAR_BINARY
    min_free_bytes: int | None = None


def resolve_path(path_str: str) -> str:
    return os.path.expanduser(os.path.expandvars(str(path_str)))


def parse_retention(value) -> int | None:
    """Interpret the retention setting.

    Anything that is not a positive whole number disables purging, the
    same way leaving the setting out does.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        days = int(str(value).strip())
    except ValueError:
        logger.debug("Non-numeric retention %r; purging disabled", value)
        return None
    return days if days > 0 else None


def config_from_dict(data: dict) -> Config:
    prefix = str(data.get("file_prefix", DEFAULT_FILE_PREFIX))
    base = resolve_path(data.get("base_dir") or DEFAULT_BASE_DIR)
    conf_dir = os.path.join(base, "conf")

    def path_setting(key: str, default: str) -> str:
        return resolve_path(data.get(key) or default)

    exclude_conf = data.get("exclude_conf", os.path.join(conf_dir, EXCLUDE_CONF_NAME))
    min_free = data.get("min_free_bytes")

    return Config(
        daily_dir=path_setting("daily_dir", os.path.join(base, f"{prefix}.daily")),
        weekly_dir=path_setting("weekly_dir", os.path.join(base, f"{prefix}.weekly")),
        log_dir=path_setting("log_dir", os.path.join(base, "log")),
        include_conf=path_setting("include_conf", os.path.join(conf_dir, INCLUDE_CONF_NAME)),
        exclude_conf=resolve_path(exclude_conf) if exclude_conf else None,
        file_prefix=prefix,
        compression=str(data.get("compression", DEFAULT_COMPRESSION)).strip(),
        export_day=str(data.get("export_day", DEFAULT_EXPORT_DAY)).strip(),
        retention_days=parse_retention(data.get("retention_days")),
        archive_root=path_setting("archive_root", DEFAULT_ARCHIVE_ROOT),
        tar_binary=path_setting("tar_binary", DEFAULT_TAR_BINARY),
        min_free_bytes=int(min_free) if min_free else None,
    )


def load_config(config_path: str) -> Config:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(
            f"Config file {config_path} must hold a JSON object, not {type(data).__name__}"
        )
    return config_from_dict(data)
