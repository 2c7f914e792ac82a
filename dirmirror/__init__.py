"""dirmirror - mirror a source directory tree onto a destination tree."""

from .exceptions import DirMirrorConfigError, DirMirrorError, DirMirrorSourceError
from .mirror import IgnoreMatcher, MatchMode, MirrorEngine, MirrorSummary

__all__ = [
    "MirrorEngine",
    "MirrorSummary",
    "IgnoreMatcher",
    "MatchMode",
    "DirMirrorError",
    "DirMirrorConfigError",
    "DirMirrorSourceError",
]
