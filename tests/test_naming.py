"""Tests for archive naming (hostadmin/backup/naming.py)."""

from datetime import datetime
from pathlib import Path

import pytest

from hostadmin.backup.naming import (
    ArchiveName,
    ArchiveNameMatcher,
    archive_prefix,
    source_base_name,
    timestamp_regex,
)


class TestArchiveName:
    """Test computing archive file names."""

    def test_filename_format(self):
        name = ArchiveName.create("web01", "etc", datetime(2024, 3, 5, 7, 8, 9))

        assert name.filename == "backup-web01-etc-20240305-070809.tar.gz"
        assert str(name) == name.filename

    def test_prefix_shared_by_pair(self):
        first = ArchiveName.create("web01", "etc", datetime(2024, 3, 5, 7, 8, 9))
        second = ArchiveName.create("web01", "etc", datetime(2025, 1, 1, 0, 0, 0))

        assert first.prefix == second.prefix == "backup-web01-etc-"
        assert first.filename.startswith(first.prefix)

    def test_timestamps_sort_chronologically(self):
        times = [
            datetime(2024, 12, 31, 23, 59, 59),
            datetime(2024, 1, 2, 0, 0, 0),
            datetime(2024, 1, 1, 23, 0, 0),
        ]
        names = [ArchiveName.create("h", "s", t).filename for t in times]

        assert sorted(names) == [names[2], names[1], names[0]]

    def test_separators_are_replaced(self):
        name = ArchiveName.create("bad/host", "a\\b", datetime(2024, 1, 1))

        assert "/" not in name.filename
        assert "\\" not in name.filename
        assert name.host == "bad_host"
        assert name.source == "a_b"


class TestSourceBaseName:

    def test_uses_directory_name(self, tmp_path):
        assert source_base_name(tmp_path / "data") == "data"

    def test_trailing_slash_and_dots(self, tmp_path):
        (tmp_path / "data").mkdir()
        assert source_base_name(Path(f"{tmp_path}/data/")) == "data"
        assert source_base_name(tmp_path / "data" / ".") == "data"

    def test_symlink_keeps_link_name(self, tmp_path):
        release = tmp_path / "release-42"
        release.mkdir()
        link = tmp_path / "current"
        link.symlink_to(release, target_is_directory=True)

        assert source_base_name(link) == "current"
        assert source_base_name(Path(f"{link}/")) == "current"

    def test_parent_reference(self, tmp_path):
        (tmp_path / "data" / "sub").mkdir(parents=True)

        assert source_base_name(tmp_path / "data" / "sub" / "..") == "data"

    def test_filesystem_root(self):
        assert source_base_name(Path("/")) == "root"


class TestArchiveNameMatcher:
    """Test recognising archives of one (host, source) pair."""

    def test_matches_own_archives(self):
        matcher = ArchiveNameMatcher("web01", "etc")

        parsed = matcher.parse("backup-web01-etc-20240305-070809.tar.gz")

        assert parsed == ArchiveName("web01", "etc", "20240305-070809")

    @pytest.mark.parametrize("filename", [
        "backup-web01-etc-old-20240305-070809.tar.gz",   # source "etc-old"
        "backup-web02-etc-20240305-070809.tar.gz",       # other host
        "backup-web01-etc-20240305-070809.tar.gz.bak",
        "backup-web01-etc-20240305.tar.gz",
        ".backup-web01-etc-20240305-070809.tar.gz.partial",
        "backup-web01-etc-latest.tar.gz",
        "notes.txt",
    ])
    def test_rejects_other_files(self, filename):
        matcher = ArchiveNameMatcher("web01", "etc")

        assert not matcher.matches(filename)

    def test_custom_timestamp_format(self):
        matcher = ArchiveNameMatcher("h", "s", timestamp_format="%Y-%m-%d_%H%M")

        assert matcher.matches("backup-h-s-2024-03-05_0708.tar.gz")
        assert not matcher.matches("backup-h-s-20240305-070809.tar.gz")

    def test_unsupported_directive(self):
        with pytest.raises(ValueError):
            timestamp_regex("%b-%d")

    def test_prefix_helper(self):
        assert archive_prefix("h/x", "src") == "backup-h_x-src-"
