"""Utility functions for dirmirror."""

from pathlib import Path, PurePath
from typing import Union

# =============================================================================
# Path utilities
# =============================================================================


def normalize_separators(path: str) -> str:
    """Replace backslashes with forward slashes.

    Args:
        path: Relative path as produced on any platform

    Returns:
        Path string using forward slashes only

    Examples:
        >>> normalize_separators("sub\\\\dir\\\\file.txt")
        'sub/dir/file.txt'
        >>> normalize_separators("already/posix")
        'already/posix'
    """
    return path.replace("\\", "/")


def relative_posix(path: Union[str, PurePath], base: Union[str, PurePath]) -> str:
    """Compute the forward-slash relative path of ``path`` under ``base``.

    Args:
        path: Path inside ``base``
        base: Root directory

    Returns:
        Relative path using forward slashes

    Raises:
        ValueError: If ``path`` is not located under ``base``
    """
    return Path(path).relative_to(Path(base)).as_posix()


def path_depth(relative_path: str) -> int:
    """Return the number of components in a forward-slash relative path.

    Examples:
        >>> path_depth("a.txt")
        1
        >>> path_depth("sub/dir/a.txt")
        3
    """
    return len([part for part in relative_path.split("/") if part])


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"
