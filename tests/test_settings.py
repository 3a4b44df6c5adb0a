"""Tests for configuration loading (hostadmin/config/settings.py)."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from hostadmin.config import BackupConfig, Settings
from hostadmin.config.settings import ArchiverType, default_log_file, short_hostname
from hostadmin.exceptions import ConfigError


class TestDefaults:

    def test_missing_file_yields_defaults(self, tmp_path):
        settings = Settings.from_yaml(tmp_path / "absent.yaml")

        assert settings.backup.default_dest == Path("backups")
        assert settings.backup.timestamp_format == "%Y%m%d-%H%M%S"
        assert settings.backup.archiver == ArchiverType.TARFILE
        assert settings.backup.use_lock is False
        assert settings.accounts.min_uid == 1000
        assert settings.accounts.default_shell == "/bin/bash"
        assert settings.logging.level == "INFO"

    def test_hostname_is_short(self, monkeypatch):
        monkeypatch.setattr("socket.gethostname", lambda: "web01.example.com")

        assert short_hostname() == "web01"
        assert BackupConfig().hostname == "web01"

    def test_log_file_depends_on_uid(self, monkeypatch):
        monkeypatch.setattr("os.geteuid", lambda: 0)
        assert default_log_file() == Path("/var/log/hostadmin.log")

        monkeypatch.setattr("os.geteuid", lambda: 1000)
        assert default_log_file() == Path("hostadmin.log")


class TestYaml:

    def test_round_trip(self, tmp_path):
        path = tmp_path / "config" / "hostadmin.yaml"
        settings = Settings(backup=BackupConfig(hostname="h1", use_lock=True))

        settings.to_yaml(path)
        loaded = Settings.from_yaml(path)

        assert loaded.backup.hostname == "h1"
        assert loaded.backup.use_lock is True

    def test_partial_file(self, tmp_path):
        path = tmp_path / "hostadmin.yaml"
        path.write_text("backup:\n  hostname: nas\n  archiver: tar\nlogging:\n  level: debug\n")

        settings = Settings.from_yaml(path)

        assert settings.backup.hostname == "nas"
        assert settings.backup.archiver == ArchiverType.TAR
        assert settings.logging.level == "DEBUG"
        assert settings.accounts.min_uid == 1000

    def test_empty_file(self, tmp_path):
        path = tmp_path / "hostadmin.yaml"
        path.write_text("")

        assert Settings.from_yaml(path).accounts.min_uid == 1000

    @pytest.mark.parametrize("content", [
        "backup: [unclosed",
        "- just\n- a list\n",
        "backup:\n  archiver: zip\n",
        "backup:\n  lock_name: ../escape\n",
        "accounts:\n  min_uid: -1\n",
        "logging:\n  level: LOUD\n",
        "backup:\n  timestamp_format: '%s'\n",
        "backup:\n  timestamp_format: fixed\n",
        "backup:\n  timestamp_format: '%Y/%m/%d-%H%M%S'\n",
        "backup:\n  timestamp_format: '%S%M%H-%d%m%Y'\n",
        "backup:\n  timestamp_format: '%Y%m%d-%H%M'\n",
    ])
    def test_invalid_files(self, tmp_path, content):
        path = tmp_path / "hostadmin.yaml"
        path.write_text(content)

        with pytest.raises(ConfigError):
            Settings.from_yaml(path)


class TestTimestampFormat:

    @pytest.mark.parametrize("fmt", ["%Y%m%d-%H%M%S", "%Y-%m-%d_%H.%M.%S", "%Y%m%dT%H%M%S"])
    def test_sortable_formats_accepted(self, fmt):
        assert BackupConfig(hostname="h", timestamp_format=fmt).timestamp_format == fmt

    def test_path_separator_rejected(self):
        with pytest.raises(ValidationError, match="path separators"):
            BackupConfig(hostname="h", timestamp_format="%Y/%m/%d-%H%M%S")

    @pytest.mark.parametrize("fmt", [
        "%S%M%H-%d%m%Y",      # least significant first
        "%d%m%Y-%H%M%S",      # day before year
        "%Y%m%d-%H%M",        # no seconds
        "%Y%m%d-%H%M%S%S",    # repeated field
    ])
    def test_unsortable_formats_rejected(self, fmt):
        with pytest.raises(ValidationError, match="in that order"):
            BackupConfig(hostname="h", timestamp_format=fmt)


class TestEnvironment:

    def test_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOSTADMIN_HOSTNAME", "envhost")
        monkeypatch.setenv("HOSTADMIN_BACKUP_DIR", str(tmp_path / "b"))
        monkeypatch.setenv("HOSTADMIN_LOG_FILE", str(tmp_path / "a.log"))
        monkeypatch.setenv("HOSTADMIN_LOG_LEVEL", "warning")

        settings = Settings.load(tmp_path / "absent.yaml")

        assert settings.backup.hostname == "envhost"
        assert settings.backup.default_dest == tmp_path / "b"
        assert settings.logging.resolved_file() == tmp_path / "a.log"
        assert settings.logging.level == "WARNING"

    def test_bad_log_level(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOSTADMIN_LOG_LEVEL", "chatty")

        with pytest.raises(ConfigError):
            Settings.load(tmp_path / "absent.yaml")
