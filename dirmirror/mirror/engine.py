"""Core mirror engine for reconciling a destination tree with its source."""

import logging
import time
from pathlib import Path
from typing import Optional, Union

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..exceptions import DirMirrorSourceError
from ..output import OutputFormatter
from .comparator import FileComparator, MirrorAction, MirrorDecision, SyncPlan
from .ignore import IgnoreMatcher
from .operations import MirrorOperations
from .result import MirrorSummary, OperationResult
from .scanner import DirectoryScanner

logger = logging.getLogger(__name__)

_ACTION_LABELS = {
    MirrorAction.COPY: "[COPY]",
    MirrorAction.CREATE_DIR: "[MKDIR]",
    MirrorAction.DELETE_FILE: "[DEL F]",
    MirrorAction.DELETE_DIR: "[DEL D]",
}


class MirrorEngine:
    """Makes a destination directory an exact one-way copy of a source.

    A run has two strictly ordered phases. First the destination is walked
    and every entry without a counterpart in the source is removed, deepest
    paths first. Then the source is walked and every directory is created
    and every file that is missing, or whose modification time or size
    differs, is copied with its timestamps. Ignored paths are left alone by
    both phases.
    """

    def __init__(
        self,
        ignore: Optional[IgnoreMatcher] = None,
        output: Optional[OutputFormatter] = None,
        operations: Optional[MirrorOperations] = None,
    ):
        """Initialize mirror engine.

        Args:
            ignore: Ignore rules applied to relative paths in both trees
            output: Output formatter for displaying progress/status
            operations: Filesystem operations (mainly replaced in tests)
        """
        self.ignore = ignore or IgnoreMatcher.empty()
        self.output = output or OutputFormatter()
        self.operations = operations or MirrorOperations()
        self.comparator = FileComparator()

    def mirror(
        self,
        source: Union[str, Path],
        destination: Union[str, Path],
        dry_run: bool = False,
    ) -> MirrorSummary:
        """Mirror ``source`` onto ``destination``.

        Args:
            source: Directory to copy from (never modified)
            destination: Directory to bring in line with ``source``
            dry_run: If True, only report what would be done

        Returns:
            MirrorSummary with statistics and any per-file failures

        Raises:
            DirMirrorSourceError: If ``source`` is missing or not a directory
            OSError: If the destination root cannot be created

        Examples:
            >>> engine = MirrorEngine(IgnoreMatcher(["node_modules"]))
            >>> summary = engine.mirror("/data/site", "/backup/site")
            >>> print(f"Copied {summary.copied} file(s)")
        """
        source = Path(source)
        destination = Path(destination)

        if not source.exists():
            raise DirMirrorSourceError(
                f"Source directory does not exist: {source}", path=source
            )
        if not source.is_dir():
            raise DirMirrorSourceError(
                f"Source path is not a directory: {source}", path=source
            )

        if not self.output.quiet:
            self.output.info(f"Mirroring: {source} -> {destination}")
            if dry_run:
                self.output.info("Dry run: No changes will be made")
            self.output.print("")

        start_time = time.time()
        summary = MirrorSummary(source=source, destination=destination, dry_run=dry_run)

        if not dry_run:
            self.operations.ensure_directory(destination)

        # Phase 1: the deletion walk must finish before anything is created
        plan = SyncPlan()
        plan.deletions, plan.ignored = self._plan_deletions(source, destination)
        self._execute_decisions(plan.deletions, summary, dry_run)
        logger.debug(
            "Deletion phase finished after %.2fs (%d entries)",
            time.time() - start_time,
            len(plan.deletions),
        )

        # Phase 2
        plan.copies, plan.up_to_date, ignored = self._plan_copies(source, destination)
        plan.ignored += ignored
        self._execute_decisions(plan.copies, summary, dry_run)
        logger.debug(
            "Copy phase finished after %.2fs (%d entries)",
            time.time() - start_time,
            len(plan.copies),
        )

        summary.up_to_date = plan.up_to_date
        summary.ignored = plan.ignored

        if not self.output.quiet:
            self._display_summary(summary)

        return summary

    def plan(
        self, source: Union[str, Path], destination: Union[str, Path]
    ) -> SyncPlan:
        """Compute both action sets without touching the filesystem.

        Both walks see the current state, so the copy set does not reflect
        the pending deletions.
        """
        source = Path(source)
        destination = Path(destination)
        plan = SyncPlan()
        plan.deletions, plan.ignored = self._plan_deletions(source, destination)
        plan.copies, plan.up_to_date, ignored = self._plan_copies(source, destination)
        plan.ignored += ignored
        return plan

    def _scan_progress(self) -> Progress:
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=self.output.console,
            transient=True,
            disable=bool(self.output.quiet or self.output.json_output),
        )

    def _plan_deletions(
        self, source: Path, destination: Path
    ) -> tuple[list[MirrorDecision], int]:
        """Walk the destination and collect entries to remove.

        Returns:
            Tuple of (ordered delete decisions, ignored entry count)
        """
        scanner = DirectoryScanner(self.ignore, keep_broken_links=True)
        with self._scan_progress() as progress:
            task = progress.add_task("Scanning destination...", total=None)
            entries = scanner.scan(destination)
            progress.update(task, description=f"Found {len(entries)} entries")

        deletions = self.comparator.plan_deletions(entries, source)
        logger.debug(
            "Destination scan: %d entries, %d ignored, %d to delete",
            len(entries),
            scanner.ignored,
            len(deletions),
        )
        return deletions, scanner.ignored

    def _plan_copies(
        self, source: Path, destination: Path
    ) -> tuple[list[MirrorDecision], int, int]:
        """Walk the source and collect directories to create and files to copy.

        Returns:
            Tuple of (decisions, up-to-date file count, ignored entry count)
        """
        scanner = DirectoryScanner(self.ignore)
        with self._scan_progress() as progress:
            task = progress.add_task("Scanning source...", total=None)
            decisions, up_to_date = self.comparator.plan_copies(
                scanner.walk(source), destination
            )
            progress.update(task, description=f"Found {len(decisions)} change(s)")

        logger.debug(
            "Source scan: %d change(s), %d up to date, %d ignored",
            len(decisions),
            up_to_date,
            scanner.ignored,
        )
        return decisions, up_to_date, scanner.ignored

    def _execute_decisions(
        self,
        decisions: list[MirrorDecision],
        summary: MirrorSummary,
        dry_run: bool,
    ) -> None:
        """Execute decisions in order, recording each result.

        A failing decision is reported and the remaining ones still run.
        """
        for decision in decisions:
            if decision.error is not None:
                result = OperationResult(
                    action=decision.action,
                    relative_path=decision.relative_path,
                    target=decision.target,
                    success=False,
                    error=decision.error,
                )
            elif dry_run:
                result = OperationResult(
                    action=decision.action,
                    relative_path=decision.relative_path,
                    target=decision.target,
                    source=decision.source.path if decision.source else None,
                )
            else:
                result = self.operations.apply(decision)

            size = decision.source.size if decision.source else 0
            summary.record(result, size=size)
            self._report(result, dry_run)

    def _report(self, result: OperationResult, dry_run: bool) -> None:
        """Print the console line for one operation result."""
        if not result.success:
            logger.warning(
                "%s failed for %s: %s",
                result.action.value,
                result.relative_path,
                result.error,
            )
            self.output.error(f"[ERROR] {result.relative_path}: {result.error}")
            return

        if self.output.quiet:
            return

        label = _ACTION_LABELS[result.action]
        if result.action == MirrorAction.COPY:
            line = f"{label} {result.source} -> {result.target}"
        else:
            line = f"{label} {result.target}"
        if dry_run:
            line = f"(dry run) {line}"
        self.output.info(line)

    def _display_summary(self, summary: MirrorSummary) -> None:
        """Display mirror summary.

        Args:
            summary: Summary of the finished run
        """
        self.output.print("")
        if summary.dry_run:
            self.output.success("Dry run complete!")
        elif summary.ok:
            self.output.success("Mirror complete!")
        else:
            self.output.warning(
                f"Mirror finished with {len(summary.failures)} error(s)"
            )

        if summary.total_actions == 0 and summary.ok:
            self.output.info("No changes needed - destination is up to date!")
            return

        size = self.output.format_size(summary.bytes_copied)
        items = [
            ("Copied", f"{summary.copied} file(s), {size}"),
            ("Created", f"{summary.created_dirs} directories"),
            ("Deleted files", f"{summary.deleted_files}"),
            ("Deleted directories", f"{summary.deleted_dirs}"),
            ("Up to date", f"{summary.up_to_date} file(s)"),
        ]
        if summary.ignored:
            items.append(("Ignored", f"{summary.ignored} entries"))
        if summary.failures:
            items.append(("Failed", f"{len(summary.failures)} operation(s)"))
        self.output.print_summary("Mirror Summary", items)
