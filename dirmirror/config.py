"""Configuration management for dirmirror.

Settings are read from environment variables so that a wrapper script or
scheduler can fix defaults once; command-line flags always take precedence.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .exceptions import DirMirrorConfigError
from .mirror.ignore import MatchMode

logger = logging.getLogger(__name__)

MATCH_MODE_ENV = "DIRMIRROR_MATCH_MODE"
IGNORE_FILE_ENV = "DIRMIRROR_IGNORE_FILE"


class Config:
    """Environment-backed configuration."""

    def __init__(self, environ: Optional[dict] = None):
        """Initialize configuration.

        Args:
            environ: Mapping to read settings from (defaults to os.environ)
        """
        self._environ = os.environ if environ is None else environ

    @property
    def match_mode(self) -> MatchMode:
        """Default ignore matching mode.

        Raises:
            DirMirrorConfigError: If the environment names an unknown mode
        """
        raw = self._environ.get(MATCH_MODE_ENV)
        if not raw:
            return MatchMode.SUBSTRING
        try:
            return MatchMode.parse(raw)
        except ValueError as e:
            raise DirMirrorConfigError(f"Invalid {MATCH_MODE_ENV}: {e}") from e

    @property
    def ignore_file(self) -> Optional[Path]:
        """Default ignore file used when none is given on the command line."""
        raw = self._environ.get(IGNORE_FILE_ENV)
        if not raw:
            return None
        return Path(raw).expanduser()

    def resolve_match_mode(self, override: Optional[str]) -> MatchMode:
        """Pick the matching mode, preferring an explicit override.

        Args:
            override: Mode name from the command line, if any

        Returns:
            The effective MatchMode
        """
        if override:
            return MatchMode.parse(override)
        return self.match_mode

    def resolve_ignore_file(self, override: Optional[str]) -> Optional[Path]:
        """Pick the ignore file, preferring an explicit override."""
        if override:
            return Path(override)
        path = self.ignore_file
        if path is not None:
            logger.debug("Using ignore file from %s: %s", IGNORE_FILE_ENV, path)
        return path


config = Config()
