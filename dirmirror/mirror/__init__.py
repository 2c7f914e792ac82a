"""Mirror engine for dirmirror - one-way directory tree synchronization."""

from .comparator import FileComparator, MirrorAction, MirrorDecision, SyncPlan
from .engine import MirrorEngine
from .ignore import IgnoreMatcher, IgnoreRule, MatchMode, load_ignore_lines
from .operations import MirrorOperations
from .result import MirrorSummary, OperationResult
from .scanner import DirectoryEntry, DirectoryScanner, EntryKind

__all__ = [
    "MirrorEngine",
    "MirrorOperations",
    "MirrorSummary",
    "OperationResult",
    "FileComparator",
    "MirrorAction",
    "MirrorDecision",
    "SyncPlan",
    "DirectoryScanner",
    "DirectoryEntry",
    "EntryKind",
    "IgnoreMatcher",
    "IgnoreRule",
    "MatchMode",
    "load_ignore_lines",
]
