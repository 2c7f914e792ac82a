"""Per-operation results and run summaries."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .comparator import MirrorAction


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a single filesystem action."""

    action: MirrorAction
    relative_path: str
    target: Path
    source: Optional[Path] = None
    success: bool = True
    error: Optional[str] = None

    @classmethod
    def failed(
        cls,
        action: MirrorAction,
        relative_path: str,
        target: Path,
        error: BaseException,
        source: Optional[Path] = None,
    ) -> "OperationResult":
        return cls(
            action=action,
            relative_path=relative_path,
            target=target,
            source=source,
            success=False,
            error=str(error),
        )

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "path": self.relative_path,
            "target": str(self.target),
            "source": str(self.source) if self.source else None,
            "success": self.success,
            "error": self.error,
        }


@dataclass
class MirrorSummary:
    """Aggregated statistics for a mirror run."""

    source: Path
    destination: Path
    dry_run: bool = False
    copied: int = 0
    bytes_copied: int = 0
    deleted_files: int = 0
    deleted_dirs: int = 0
    created_dirs: int = 0
    up_to_date: int = 0
    ignored: int = 0
    failures: list[OperationResult] = field(default_factory=list)

    @property
    def total_actions(self) -> int:
        return (
            self.copied + self.deleted_files + self.deleted_dirs + self.created_dirs
        )

    @property
    def ok(self) -> bool:
        return not self.failures

    def record(self, result: OperationResult, size: int = 0) -> None:
        """Count an operation result.

        Args:
            result: Result of the operation
            size: Bytes transferred (copies only)
        """
        if not result.success:
            self.failures.append(result)
            return
        if result.action == MirrorAction.COPY:
            self.copied += 1
            self.bytes_copied += size
        elif result.action == MirrorAction.DELETE_FILE:
            self.deleted_files += 1
        elif result.action == MirrorAction.DELETE_DIR:
            self.deleted_dirs += 1
        elif result.action == MirrorAction.CREATE_DIR:
            self.created_dirs += 1

    def to_dict(self) -> dict:
        """Convert summary to a JSON-serializable dictionary."""
        return {
            "source": str(self.source),
            "destination": str(self.destination),
            "dry_run": self.dry_run,
            "copied": self.copied,
            "bytes_copied": self.bytes_copied,
            "deleted_files": self.deleted_files,
            "deleted_dirs": self.deleted_dirs,
            "created_dirs": self.created_dirs,
            "up_to_date": self.up_to_date,
            "ignored": self.ignored,
            "failed": len(self.failures),
            "failures": [f.to_dict() for f in self.failures],
        }
