"""Exceptions raised by dirmirror."""


class DirMirrorError(Exception):
    """Base exception for all dirmirror errors."""


class DirMirrorConfigError(DirMirrorError):
    """Raised when a configuration value is invalid."""


class DirMirrorSourceError(DirMirrorError, ValueError):
    """Raised when the source tree of a mirror run cannot be used.

    Subclasses ValueError so callers validating arguments can catch it
    without importing dirmirror exceptions.
    """

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path
