"""Tests for configuration loading and pre-flight validation.

Covers:
- JSON loading, defaults derived from base_dir, path expansion
- Retention parsing (absent / non-numeric / non-positive disables purge)
- Include/exclude list parsing (comments, blanks, leading '/')
- Validator: every problem reported in one pass, distinct exit codes
"""

import json
import logging
import os

import pytest

from tarrotate.config.loader import (
    Config,
    config_from_dict,
    load_config,
    parse_retention,
)
from tarrotate.config.settings import (
    EXCLUDE_CONF_NAME,
    EXIT_CONFIG_INVALID,
    EXIT_EXPORT_DAY_INVALID,
    INCLUDE_CONF_NAME,
)
from tarrotate.config.validator import (
    normalize_compression,
    read_path_list,
    validate_config,
)
from tarrotate.errors import (
    EMPTY_INCLUDE,
    INVALID_COMPRESSION,
    INVALID_EXPORT_DAY,
    MISSING_DIR,
    ConfigError,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def backup_tree(tmp_path):
    """A base_dir laid out the way the defaults expect."""
    base = tmp_path / "backups"
    (base / "conf").mkdir(parents=True)
    (base / "log").mkdir()
    (base / "backup.daily").mkdir()
    (base / "backup.weekly").mkdir()
    (base / "conf" / INCLUDE_CONF_NAME).write_text("etc\nhome/alice\n")
    return base


def make_config(base, **overrides) -> Config:
    values = {
        "daily_dir": str(base / "backup.daily"),
        "weekly_dir": str(base / "backup.weekly"),
        "log_dir": str(base / "log"),
        "include_conf": str(base / "conf" / INCLUDE_CONF_NAME),
        "exclude_conf": str(base / "conf" / EXCLUDE_CONF_NAME),
    }
    values.update(overrides)
    return Config(**values)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

class TestLoadConfig:
    def test_defaults_follow_base_dir(self, backup_tree):
        cfg = config_from_dict({"base_dir": str(backup_tree)})
        assert cfg.daily_dir == str(backup_tree / "backup.daily")
        assert cfg.weekly_dir == str(backup_tree / "backup.weekly")
        assert cfg.log_dir == str(backup_tree / "log")
        assert cfg.include_conf == str(backup_tree / "conf" / INCLUDE_CONF_NAME)
        assert cfg.exclude_conf == str(backup_tree / "conf" / EXCLUDE_CONF_NAME)
        assert cfg.file_prefix == "backup"
        assert cfg.compression == "bz2"
        assert cfg.export_day == "Fri"
        assert cfg.archive_root == "/"

    def test_prefix_shapes_store_dirs(self, backup_tree):
        cfg = config_from_dict({"base_dir": str(backup_tree), "file_prefix": "web01"})
        assert cfg.daily_dir.endswith("web01.daily")
        assert cfg.weekly_dir.endswith("web01.weekly")

    def test_explicit_paths_win(self, tmp_path):
        cfg = config_from_dict({
            "base_dir": str(tmp_path),
            "daily_dir": str(tmp_path / "d"),
            "weekly_dir": str(tmp_path / "w"),
        })
        assert cfg.daily_dir == str(tmp_path / "d")
        assert cfg.weekly_dir == str(tmp_path / "w")

    def test_env_vars_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BACKUP_TEST_ROOT", str(tmp_path))
        cfg = config_from_dict({"base_dir": "$BACKUP_TEST_ROOT/backups"})
        assert cfg.daily_dir == os.path.join(str(tmp_path), "backups", "backup.daily")

    def test_null_exclude_conf(self, tmp_path):
        cfg = config_from_dict({"base_dir": str(tmp_path), "exclude_conf": None})
        assert cfg.exclude_conf is None

    def test_load_from_file(self, tmp_path, backup_tree):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "base_dir": str(backup_tree),
            "retention_days": 14,
            "compression": "gz",
            "export_day": "Sun",
        }))
        cfg = load_config(str(path))
        assert cfg.retention_days == 14
        assert cfg.compression == "gz"
        assert cfg.export_day == "Sun"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.json"))

    @pytest.mark.parametrize("body", ["[]", '"x"', "42", "null"])
    def test_non_object_json_rejected(self, tmp_path, body):
        path = tmp_path / "config.json"
        path.write_text(body)
        with pytest.raises(ValueError, match="JSON object"):
            load_config(str(path))

    def test_config_is_immutable(self, backup_tree):
        cfg = make_config(backup_tree)
        with pytest.raises(AttributeError):
            cfg.file_prefix = "other"


class TestParseRetention:
    @pytest.mark.parametrize("value,expected", [
        (7, 7),
        ("14", 14),
        (" 30 ", 30),
        (None, None),
        ("", None),
        ("weekly", None),
        (0, None),
        (-3, None),
        (True, None),
    ])
    def test_values(self, value, expected):
        assert parse_retention(value) == expected

    def test_absent_key_disables_purge(self, tmp_path):
        assert config_from_dict({"base_dir": str(tmp_path)}).retention_days is None


# ---------------------------------------------------------------------------
# Path lists
# ---------------------------------------------------------------------------

class TestReadPathList:
    def test_skips_comments_and_blanks(self, tmp_path):
        p = tmp_path / "include.conf"
        p.write_text("# targets\n\netc\n   \n  # indented comment\nvar/www\n")
        assert read_path_list(str(p)) == ["etc", "var/www"]

    def test_strips_leading_separator(self, tmp_path):
        p = tmp_path / "include.conf"
        p.write_text("/etc\n//home/alice/*.cpp~\n")
        assert read_path_list(str(p)) == ["etc", "home/alice/*.cpp~"]

    def test_preserves_order(self, tmp_path):
        p = tmp_path / "include.conf"
        p.write_text("b\na\nc\n")
        assert read_path_list(str(p)) == ["b", "a", "c"]

    def test_missing_file_is_empty(self, tmp_path):
        assert read_path_list(str(tmp_path / "missing.conf")) == []

    def test_none_is_empty(self):
        assert read_path_list(None) == []


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidateConfig:
    def test_valid_config(self, backup_tree):
        validated = validate_config(make_config(backup_tree))
        assert validated.include_list == ("etc", "home/alice")
        assert validated.exclude_list == ()
        assert validated.file_extension == "tbz"
        assert validated.tar_flag == "-j"

    @pytest.mark.parametrize("compression,ext", [
        ("bz2", "tbz"), ("gz", "tgz"), ("none", "tar"),
        ("bzip2", "tbz"), ("gzip", "tgz"), ("GZ", "tgz"),
    ])
    def test_compression_extension(self, backup_tree, compression, ext):
        validated = validate_config(make_config(backup_tree, compression=compression))
        assert validated.file_extension == ext

    def test_exclude_list_loaded(self, backup_tree):
        (backup_tree / "conf" / EXCLUDE_CONF_NAME).write_text("home/alice/.cache\n")
        validated = validate_config(make_config(backup_tree))
        assert validated.exclude_list == ("home/alice/.cache",)

    def test_missing_daily_dir(self, backup_tree):
        cfg = make_config(backup_tree, daily_dir=str(backup_tree / "gone"))
        with pytest.raises(ConfigError) as exc_info:
            validate_config(cfg)
        assert [p.code for p in exc_info.value.problems] == [MISSING_DIR]
        assert exc_info.value.exit_code == EXIT_CONFIG_INVALID

    def test_weekly_dir_must_be_directory(self, backup_tree):
        not_a_dir = backup_tree / "file"
        not_a_dir.write_text("x")
        cfg = make_config(backup_tree, weekly_dir=str(not_a_dir))
        with pytest.raises(ConfigError) as exc_info:
            validate_config(cfg)
        assert "weekly_dir" in str(exc_info.value)

    def test_include_with_only_comments_is_empty(self, backup_tree):
        (backup_tree / "conf" / INCLUDE_CONF_NAME).write_text("# nothing yet\n\n")
        with pytest.raises(ConfigError) as exc_info:
            validate_config(make_config(backup_tree))
        assert [p.code for p in exc_info.value.problems] == [EMPTY_INCLUDE]

    def test_missing_include_file(self, backup_tree):
        cfg = make_config(backup_tree, include_conf=str(backup_tree / "none.conf"))
        with pytest.raises(ConfigError) as exc_info:
            validate_config(cfg)
        assert exc_info.value.problems[0].code == EMPTY_INCLUDE

    def test_invalid_compression(self, backup_tree):
        with pytest.raises(ConfigError) as exc_info:
            validate_config(make_config(backup_tree, compression="zstd"))
        assert exc_info.value.problems[0].code == INVALID_COMPRESSION
        assert exc_info.value.exit_code == EXIT_CONFIG_INVALID

    def test_invalid_export_day_alone(self, backup_tree):
        with pytest.raises(ConfigError) as exc_info:
            validate_config(make_config(backup_tree, export_day="Friday"))
        assert exc_info.value.problems[0].code == INVALID_EXPORT_DAY
        assert exc_info.value.exit_code == EXIT_EXPORT_DAY_INVALID

    def test_all_problems_reported_together(self, backup_tree):
        cfg = make_config(
            backup_tree,
            daily_dir=str(backup_tree / "x"),
            weekly_dir=str(backup_tree / "y"),
            include_conf=str(backup_tree / "none.conf"),
            compression="lzma",
            export_day="Caturday",
        )
        with pytest.raises(ConfigError) as exc_info:
            validate_config(cfg)
        codes = [p.code for p in exc_info.value.problems]
        assert codes == [
            MISSING_DIR, MISSING_DIR, EMPTY_INCLUDE,
            INVALID_COMPRESSION, INVALID_EXPORT_DAY,
        ]
        # Other problems take precedence over the export-day code
        assert exc_info.value.exit_code == EXIT_CONFIG_INVALID

    def test_validation_touches_nothing(self, backup_tree):
        cfg = make_config(backup_tree, compression="bogus")
        before = sorted(os.listdir(backup_tree / "backup.daily"))
        with pytest.raises(ConfigError):
            validate_config(cfg)
        assert sorted(os.listdir(backup_tree / "backup.daily")) == before

    def test_short_retention_only_warns(self, backup_tree, caplog):
        with caplog.at_level(logging.WARNING, logger="tarrotate"):
            validated = validate_config(make_config(backup_tree, retention_days=5))
        assert validated.config.retention_days == 5
        assert "below 7" in caplog.text

    def test_retention_not_validated(self, backup_tree):
        validated = validate_config(make_config(backup_tree, retention_days=None))
        assert validated.config.retention_days is None


class TestNormalizeCompression:
    def test_unknown(self):
        assert normalize_compression("xz") is None

    def test_aliases(self):
        assert normalize_compression("bzip2") == "bz2"
        assert normalize_compression("gzip") == "gz"
        assert normalize_compression("none") == "none"
