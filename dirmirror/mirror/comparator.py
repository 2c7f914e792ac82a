"""Change detection and planning for mirror runs."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from ..utils import path_depth
from .scanner import DirectoryEntry, stat_entry

logger = logging.getLogger(__name__)


class MirrorAction(str, Enum):
    """Actions that can be taken during a mirror run."""

    COPY = "copy"
    """Copy source file over the destination"""

    CREATE_DIR = "create_dir"
    """Create a missing destination directory"""

    DELETE_FILE = "delete_file"
    """Delete a destination file absent from the source"""

    DELETE_DIR = "delete_dir"
    """Delete a destination directory absent from the source"""

    SKIP = "skip"
    """Destination is already up to date"""


@dataclass
class MirrorDecision:
    """Represents a decision about one path in a mirror run."""

    action: MirrorAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    relative_path: str
    """Relative path of the entry"""

    target: Path
    """Destination path the action applies to"""

    source: Optional[DirectoryEntry] = None
    """Source entry (if exists)"""

    destination: Optional[DirectoryEntry] = None
    """Destination entry (if exists)"""

    error: Optional[str] = None
    """Why the counterpart could not be inspected (nothing is attempted)"""


@dataclass
class SyncPlan:
    """Actions computed for one mirror run."""

    deletions: list[MirrorDecision] = field(default_factory=list)
    """Destination entries to remove, children before parents"""

    copies: list[MirrorDecision] = field(default_factory=list)
    """Directories to create and files to copy, parents before children"""

    up_to_date: int = 0
    """Source files whose destination copy is current"""

    ignored: int = 0
    """Entries excluded by ignore rules across both walks"""

    @property
    def is_empty(self) -> bool:
        return not self.deletions and not self.copies


def deletion_sort_key(decision: MirrorDecision) -> tuple[int, str]:
    """Sort key placing deeper paths first.

    Used with ``reverse=True``: depth descending guarantees that children
    are removed before their ancestors regardless of naming, and the path
    string breaks ties deterministically.
    """
    return path_depth(decision.relative_path), decision.target.as_posix()


def order_deletions(decisions: Iterable[MirrorDecision]) -> list[MirrorDecision]:
    """Return deletions ordered children-first."""
    return sorted(decisions, key=deletion_sort_key, reverse=True)


class FileComparator:
    """Compares source and destination entries to determine mirror actions.

    A destination file is stale when it is missing, or when its modification
    time or size differs from the source. Content is never compared.
    """

    def needs_copy(
        self, source: DirectoryEntry, destination: Optional[DirectoryEntry]
    ) -> Optional[str]:
        """Return why ``source`` must be copied, or None if it is current.

        Args:
            source: Source file entry
            destination: Destination entry at the same relative path

        Returns:
            Reason string, or None if no copy is needed
        """
        if destination is None:
            return "New source file"
        if destination.is_dir:
            return "Destination is a directory"
        if source.mtime_ns != destination.mtime_ns:
            return "Modification time differs"
        if source.size != destination.size:
            return f"Size differs ({source.size} vs {destination.size} bytes)"
        return None

    def compare_source_entry(
        self, source: DirectoryEntry, destination_root: Path
    ) -> MirrorDecision:
        """Decide what to do with one source entry.

        Args:
            source: Entry found in the source tree
            destination_root: Root of the destination tree

        Returns:
            MirrorDecision for this entry
        """
        target = destination_root / source.relative_path
        try:
            destination = stat_entry(target, destination_root)
        except OSError as e:
            logger.warning("Cannot inspect %s: %s", target, e)
            return MirrorDecision(
                action=MirrorAction.CREATE_DIR if source.is_dir else MirrorAction.COPY,
                reason="Destination cannot be inspected",
                relative_path=source.relative_path,
                target=target,
                source=source,
                error=str(e),
            )

        if source.is_dir:
            if destination is not None and destination.is_dir:
                return MirrorDecision(
                    action=MirrorAction.SKIP,
                    reason="Directory exists",
                    relative_path=source.relative_path,
                    target=target,
                    source=source,
                    destination=destination,
                )
            return MirrorDecision(
                action=MirrorAction.CREATE_DIR,
                reason="New source directory",
                relative_path=source.relative_path,
                target=target,
                source=source,
                destination=destination,
            )

        reason = self.needs_copy(source, destination)
        if reason is None:
            return MirrorDecision(
                action=MirrorAction.SKIP,
                reason="Up to date",
                relative_path=source.relative_path,
                target=target,
                source=source,
                destination=destination,
            )
        return MirrorDecision(
            action=MirrorAction.COPY,
            reason=reason,
            relative_path=source.relative_path,
            target=target,
            source=source,
            destination=destination,
        )

    def compare_destination_entry(
        self, destination: DirectoryEntry, source_root: Path
    ) -> Optional[MirrorDecision]:
        """Decide whether a destination entry must be removed.

        An entry is removed when nothing exists at the same relative path in
        the source, or when the source holds the other kind of entry there.
        If the source path cannot be inspected the decision carries an
        ``error`` and the entry is left in place.

        Args:
            destination: Entry found in the destination tree
            source_root: Root of the source tree

        Returns:
            Delete decision, or None if the entry is kept
        """
        action = (
            MirrorAction.DELETE_DIR if destination.is_dir else MirrorAction.DELETE_FILE
        )
        counterpart = source_root / destination.relative_path
        try:
            source = stat_entry(counterpart, source_root)
        except OSError as e:
            logger.warning("Cannot inspect %s: %s", counterpart, e)
            return MirrorDecision(
                action=action,
                reason="Source cannot be inspected",
                relative_path=destination.relative_path,
                target=destination.path,
                destination=destination,
                error=str(e),
            )

        if source is None:
            reason = "Not present in source"
        elif source.kind != destination.kind:
            reason = f"Source is a {source.kind.value}"
        else:
            return None

        return MirrorDecision(
            action=action,
            reason=reason,
            relative_path=destination.relative_path,
            target=destination.path,
            source=source,
            destination=destination,
        )

    def plan_deletions(
        self, destination_entries: Iterable[DirectoryEntry], source_root: Path
    ) -> list[MirrorDecision]:
        """Compute the ordered deletion set for a destination tree."""
        decisions = []
        for entry in destination_entries:
            decision = self.compare_destination_entry(entry, source_root)
            if decision is not None:
                decisions.append(decision)
        return order_deletions(decisions)

    def plan_copies(
        self, source_entries: Iterable[DirectoryEntry], destination_root: Path
    ) -> tuple[list[MirrorDecision], int]:
        """Compute the copy set for a source tree.

        Returns:
            Tuple of (actionable decisions in walk order, up-to-date file count)
        """
        decisions = []
        up_to_date = 0
        for entry in source_entries:
            decision = self.compare_source_entry(entry, destination_root)
            if decision.action == MirrorAction.SKIP:
                if not entry.is_dir:
                    up_to_date += 1
                continue
            logger.debug("%s: %s", decision.relative_path, decision.reason)
            decisions.append(decision)
        return decisions, up_to_date
