"""Filesystem operations for mirror runs.

Each operation returns an OperationResult instead of raising, so a single
failing file never stops the rest of the run.
"""

import logging
import os
import shutil
from pathlib import Path

from .comparator import MirrorAction, MirrorDecision
from .result import OperationResult

logger = logging.getLogger(__name__)


class MirrorOperations:
    """Primitive filesystem actions used by the mirror engine."""

    def ensure_directory(self, path: Path) -> None:
        """Create ``path`` and any missing parents (no-op if it exists)."""
        path.mkdir(parents=True, exist_ok=True)

    def copy_file(self, source: Path, target: Path) -> None:
        """Copy file contents and carry over the source timestamps.

        The destination is overwritten if it exists; parent directories are
        created as needed.

        Raises:
            OSError: If the copy or timestamp update fails
        """
        self.ensure_directory(target.parent)
        shutil.copyfile(source, target)
        stat = source.stat()
        os.utime(target, ns=(stat.st_atime_ns, stat.st_mtime_ns))

    def remove(self, path: Path, is_dir: bool) -> None:
        """Remove a file or an empty directory.

        Directories are not removed recursively: anything left inside (for
        example an ignored file) keeps the directory in place.

        Raises:
            OSError: If the removal fails
        """
        if is_dir:
            path.rmdir()
        else:
            path.unlink()

    def apply(self, decision: MirrorDecision) -> OperationResult:
        """Execute a single mirror decision.

        Args:
            decision: Decision to execute

        Returns:
            OperationResult describing success or failure

        Raises:
            ValueError: If the decision is not actionable
        """
        if decision.action == MirrorAction.SKIP:
            raise ValueError(f"Cannot apply action {decision.action.value}")
        source_path = decision.source.path if decision.source else None
        if decision.action == MirrorAction.COPY and source_path is None:
            raise ValueError(f"No source for {decision.relative_path}")

        try:
            if decision.action == MirrorAction.COPY:
                self.copy_file(source_path, decision.target)
            elif decision.action == MirrorAction.CREATE_DIR:
                self.ensure_directory(decision.target)
            elif decision.action == MirrorAction.DELETE_FILE:
                self.remove(decision.target, is_dir=False)
            else:
                self.remove(decision.target, is_dir=True)
        except OSError as e:
            logger.debug(
                "%s failed for %s: %s", decision.action.value, decision.relative_path, e
            )
            return OperationResult.failed(
                decision.action,
                decision.relative_path,
                decision.target,
                e,
                source=source_path,
            )

        return OperationResult(
            action=decision.action,
            relative_path=decision.relative_path,
            target=decision.target,
            source=source_path,
        )
