"""Tests for directory scanning."""

import os
from pathlib import Path

import pytest

from dirmirror.mirror.ignore import IgnoreMatcher
from dirmirror.mirror.scanner import (
    DirectoryEntry,
    DirectoryScanner,
    EntryKind,
    stat_entry,
)


def _build_tree(root: Path) -> None:
    (root / "a.txt").write_text("alpha")
    (root / "sub").mkdir()
    (root / "sub" / "b.txt").write_text("bravo!")
    (root / "sub" / "deep").mkdir()
    (root / "sub" / "deep" / "c.txt").write_text("c")
    (root / "cache").mkdir()
    (root / "cache" / "blob.bin").write_bytes(b"\x00" * 10)


class TestDirectoryEntry:
    """Tests for DirectoryEntry."""

    def test_from_path_file(self, tmp_path):
        """Test creating an entry for a file."""
        file_path = tmp_path / "dir" / "file.txt"
        file_path.parent.mkdir()
        file_path.write_text("hello")
        os.utime(file_path, ns=(1_600_000_000_000_000_000, 1_600_000_000_123_456_789))

        entry = DirectoryEntry.from_path(file_path, tmp_path)

        assert entry.path == file_path
        assert entry.relative_path == "dir/file.txt"
        assert entry.kind == EntryKind.FILE
        assert entry.is_dir is False
        assert entry.size == 5
        assert entry.mtime_ns == 1_600_000_000_123_456_789
        assert entry.mtime == pytest.approx(1_600_000_000.123456789)

    def test_from_path_directory(self, tmp_path):
        """Test creating an entry for a directory."""
        (tmp_path / "sub").mkdir()

        entry = DirectoryEntry.from_path(tmp_path / "sub", tmp_path)

        assert entry.kind == EntryKind.DIRECTORY
        assert entry.is_dir is True
        assert entry.size == 0

    def test_stat_entry_missing(self, tmp_path):
        """Test that stat_entry returns None for missing paths."""
        assert stat_entry(tmp_path / "nope", tmp_path) is None

    def test_stat_entry_below_a_file(self, tmp_path):
        """Test that a path below a regular file counts as missing."""
        (tmp_path / "file").write_text("x")
        assert stat_entry(tmp_path / "file" / "child", tmp_path) is None


class TestDirectoryScanner:
    """Tests for DirectoryScanner."""

    def test_scan_lists_every_entry(self, tmp_path):
        """Test that all files and directories are found."""
        _build_tree(tmp_path)

        entries = DirectoryScanner().scan(tmp_path)

        assert {e.relative_path for e in entries} == {
            "a.txt",
            "cache",
            "cache/blob.bin",
            "sub",
            "sub/b.txt",
            "sub/deep",
            "sub/deep/c.txt",
        }

    def test_parents_before_children(self, tmp_path):
        """Test that a directory is yielded before its contents."""
        _build_tree(tmp_path)

        order = [e.relative_path for e in DirectoryScanner().scan(tmp_path)]

        assert order.index("sub") < order.index("sub/b.txt")
        assert order.index("sub/deep") < order.index("sub/deep/c.txt")

    def test_scan_applies_ignore_rules(self, tmp_path):
        """Test that ignored entries are skipped and counted."""
        _build_tree(tmp_path)
        scanner = DirectoryScanner(IgnoreMatcher(["cache"]))

        paths = {e.relative_path for e in scanner.scan(tmp_path)}

        assert "cache" not in paths
        assert "cache/blob.bin" not in paths
        assert scanner.ignored == 2

    def test_negated_rule_reaches_inside_ignored_directory(self, tmp_path):
        """Test that children of an ignored directory are still evaluated."""
        _build_tree(tmp_path)
        scanner = DirectoryScanner(IgnoreMatcher(["sub", "!sub/b.txt"]))

        paths = {e.relative_path for e in scanner.scan(tmp_path)}

        assert "sub" not in paths
        assert "sub/b.txt" in paths
        assert "sub/deep/c.txt" not in paths

    def test_scan_missing_root(self, tmp_path):
        """Test that scanning a missing directory yields nothing."""
        assert DirectoryScanner().scan(tmp_path / "missing") == []

    def test_iter_entries_ignores_nothing(self, tmp_path):
        """Test that iter_entries does not filter."""
        _build_tree(tmp_path)
        scanner = DirectoryScanner(IgnoreMatcher(["a.txt"]))

        paths = {e.relative_path for e in scanner.iter_entries(tmp_path)}

        assert "a.txt" in paths
        assert scanner.ignored == 0

    def test_unreadable_entry_is_skipped(self, tmp_path):
        """Test that an entry whose stat fails is logged and skipped."""
        _build_tree(tmp_path)
        os.symlink("loop", tmp_path / "loop")

        paths = {e.relative_path for e in DirectoryScanner().scan(tmp_path)}

        assert "loop" not in paths
        assert "a.txt" in paths
        assert "sub/deep/c.txt" in paths

    def test_broken_links_kept_on_request(self, tmp_path):
        """Test that dangling and looping symlinks can be yielded as files."""
        (tmp_path / "a.txt").write_text("a")
        os.symlink(tmp_path / "missing-target", tmp_path / "dangling")
        os.symlink("loop", tmp_path / "loop")

        default = {e.relative_path for e in DirectoryScanner().scan(tmp_path)}
        kept = {
            e.relative_path: e
            for e in DirectoryScanner(keep_broken_links=True).scan(tmp_path)
        }

        assert default == {"a.txt"}
        assert set(kept) == {"a.txt", "dangling", "loop"}
        assert kept["dangling"].kind == EntryKind.FILE
        assert kept["loop"].kind == EntryKind.FILE
