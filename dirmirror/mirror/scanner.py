"""Directory scanning utilities for mirror runs."""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from stat import S_ISDIR
from typing import Iterator, Optional

from ..utils import relative_posix
from .ignore import IgnoreMatcher

logger = logging.getLogger(__name__)


class EntryKind(str, Enum):
    """Kind of a filesystem entry."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class DirectoryEntry:
    """A file or directory found while walking a tree."""

    path: Path
    """Absolute path to the entry"""

    relative_path: str
    """Relative path (using forward slashes for cross-platform compatibility)"""

    kind: EntryKind
    """File or directory"""

    size: int = 0
    """Size in bytes (0 for directories)"""

    mtime_ns: int = 0
    """Last modification time in nanoseconds since the epoch"""

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY

    @property
    def mtime(self) -> float:
        """Last modification time (Unix timestamp)."""
        return self.mtime_ns / 1_000_000_000

    @classmethod
    def from_path(
        cls, path: Path, base_path: Path, follow_symlinks: bool = True
    ) -> "DirectoryEntry":
        """Create a DirectoryEntry from a path on disk.

        Args:
            path: Absolute path to the entry
            base_path: Root used to compute the relative path
            follow_symlinks: If False, describe a symlink itself (always a file)

        Returns:
            DirectoryEntry instance

        Raises:
            OSError: If the entry cannot be stat'ed
        """
        stat = path.stat() if follow_symlinks else path.lstat()
        is_dir = S_ISDIR(stat.st_mode)
        return cls(
            path=path,
            relative_path=relative_posix(path, base_path),
            kind=EntryKind.DIRECTORY if is_dir else EntryKind.FILE,
            size=0 if is_dir else stat.st_size,
            mtime_ns=stat.st_mtime_ns,
        )


def stat_entry(path: Path, base_path: Path) -> Optional[DirectoryEntry]:
    """Stat a path, returning None if nothing exists there.

    Raises:
        OSError: If the path exists but cannot be stat'ed
    """
    try:
        return DirectoryEntry.from_path(path, base_path)
    except (FileNotFoundError, NotADirectoryError):
        return None


class DirectoryScanner:
    """Walks a directory tree and yields its entries.

    Every entry below the root is visited, parents before children, with
    siblings in sorted order. Ignored directories are still descended into
    because a later negated rule may re-include their children; the
    ``ignored`` counter records how many entries were filtered out.

    Examples:
        >>> scanner = DirectoryScanner(IgnoreMatcher(["cache"]))
        >>> for entry in scanner.walk(Path("/data/src")):
        ...     print(entry.relative_path)
    """

    def __init__(
        self, ignore: Optional[IgnoreMatcher] = None, keep_broken_links: bool = False
    ):
        """Initialize directory scanner.

        Args:
            ignore: Matcher applied to each relative path (None ignores nothing)
            keep_broken_links: Yield symlinks whose target cannot be stat'ed
                as file entries instead of skipping them
        """
        self.ignore = ignore or IgnoreMatcher.empty()
        self.keep_broken_links = keep_broken_links
        self.ignored = 0

    def should_ignore(self, relative_path: str, is_dir: bool = False) -> bool:
        """Check a relative path against the ignore rules."""
        if self.ignore.is_ignored(relative_path, is_dir=is_dir):
            logger.debug("Ignoring (from rules): %s", relative_path)
            return True
        return False

    def _stat(self, path: Path, root: Path) -> Optional[DirectoryEntry]:
        try:
            return DirectoryEntry.from_path(path, root)
        except OSError as e:
            error = e

        if self.keep_broken_links and path.is_symlink():
            logger.debug("Broken symlink: %s (%s)", path, error)
            try:
                return DirectoryEntry.from_path(path, root, follow_symlinks=False)
            except OSError as e:
                error = e

        if isinstance(error, FileNotFoundError):
            logger.debug("Entry vanished during scan: %s", path)
        else:
            logger.warning("Cannot read %s, skipping: %s", path, error)
        return None

    def iter_entries(self, root: Path) -> Iterator[DirectoryEntry]:
        """Yield every entry under ``root``, ignored or not.

        Directories that cannot be listed and entries that cannot be
        stat'ed are logged and skipped, as are entries that vanish between
        listing and stat.
        """

        def on_error(error: OSError) -> None:
            logger.warning("Cannot read directory %s: %s", error.filename, error)

        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            dirnames.sort()
            current = Path(dirpath)
            for name in dirnames + sorted(filenames):
                entry = self._stat(current / name, root)
                if entry is not None:
                    yield entry

    def walk(self, root: Path) -> Iterator[DirectoryEntry]:
        """Yield the entries under ``root`` that are not ignored."""
        for entry in self.iter_entries(root):
            if self.should_ignore(entry.relative_path, is_dir=entry.is_dir):
                self.ignored += 1
                continue
            yield entry

    def scan(self, root: Path) -> list[DirectoryEntry]:
        """Collect the non-ignored entries under ``root``.

        Args:
            root: Directory to scan

        Returns:
            List of DirectoryEntry objects, or an empty list if ``root``
            does not exist
        """
        if not root.is_dir():
            return []
        return list(self.walk(root))
