"""Ignore rules for mirror runs.

An ignore list is a sequence of raw lines, one rule per line::

    # comments and blank lines are skipped
    build
    !build/keep.txt

Rules are evaluated in order against a relative path and the last matching
rule decides: a plain rule marks the path ignored, a ``!``-prefixed rule
re-includes it. Paths no rule matches are not ignored.

By default a rule matches when its pattern occurs anywhere in the path
(``MatchMode.SUBSTRING``), so ``foo`` matches ``barfoo/baz`` as well as
``foo/bar``. Gitignore-style wildcards and anchored prefixes are available
as opt-in modes; they change which paths are excluded and must be selected
explicitly.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

import pathspec

from ..utils import normalize_separators

logger = logging.getLogger(__name__)

# Characters trimmed from the end of each raw rule line
TRAILING_WHITESPACE = " \r\n\t"

COMMENT_PREFIX = "#"
NEGATION_PREFIX = "!"


class MatchMode(str, Enum):
    """How a rule pattern is compared against a path."""

    SUBSTRING = "substring"
    """Pattern occurs anywhere in the path"""

    GLOB = "glob"
    """Gitignore-style wildcard matching"""

    PREFIX = "prefix"
    """Path equals the pattern or lies beneath it"""

    @classmethod
    def parse(cls, value: Union[str, "MatchMode"]) -> "MatchMode":
        """Parse a mode name (case-insensitive).

        Raises:
            ValueError: If the name is not a known mode
        """
        if isinstance(value, MatchMode):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(
                f"Unknown match mode '{value}' (expected one of: {valid})"
            ) from None


@dataclass(frozen=True)
class IgnoreRule:
    """A single parsed ignore rule."""

    pattern: str
    """Pattern text with the negation prefix removed"""

    negated: bool = False
    """True if the rule re-includes matching paths"""

    @classmethod
    def parse(cls, line: str) -> Optional["IgnoreRule"]:
        """Parse a raw ignore line.

        Args:
            line: Raw line, possibly with trailing whitespace or newline

        Returns:
            IgnoreRule, or None for blank and comment lines

        Examples:
            >>> IgnoreRule.parse("build  \\n")
            IgnoreRule(pattern='build', negated=False)
            >>> IgnoreRule.parse("!build/keep.txt")
            IgnoreRule(pattern='build/keep.txt', negated=True)
            >>> IgnoreRule.parse("# comment") is None
            True
        """
        text = line.rstrip(TRAILING_WHITESPACE)
        if not text or text.startswith(COMMENT_PREFIX):
            return None
        if text.startswith(NEGATION_PREFIX):
            return cls(pattern=text[len(NEGATION_PREFIX) :], negated=True)
        return cls(pattern=text)

    def __str__(self) -> str:
        return f"{NEGATION_PREFIX}{self.pattern}" if self.negated else self.pattern


# (path, is_dir) -> matched
PathMatcher = Callable[[str, bool], bool]


def _substring_matcher(pattern: str) -> PathMatcher:
    def match(path: str, is_dir: bool) -> bool:
        return pattern in path

    return match


def _glob_matcher(pattern: str) -> PathMatcher:
    # One spec per rule: negation is handled by rule order, not by pathspec
    spec = pathspec.GitIgnoreSpec.from_lines([pattern])

    def match(path: str, is_dir: bool) -> bool:
        if spec.match_file(path):
            return True
        # Directory-only patterns ("build/") only match with a trailing slash
        return is_dir and spec.match_file(f"{path}/")

    return match


def _prefix_matcher(pattern: str) -> PathMatcher:
    anchor = pattern.strip("/")

    def match(path: str, is_dir: bool) -> bool:
        if not anchor:
            return True
        return path == anchor or path.startswith(f"{anchor}/")

    return match


_MATCHER_FACTORIES: dict[MatchMode, Callable[[str], PathMatcher]] = {
    MatchMode.SUBSTRING: _substring_matcher,
    MatchMode.GLOB: _glob_matcher,
    MatchMode.PREFIX: _prefix_matcher,
}


def load_ignore_lines(path: Union[str, Path, None]) -> list[str]:
    """Read raw rule lines from an ignore file.

    A missing path, a path that is not a regular file, or a file that
    cannot be read all yield an empty list.

    Args:
        path: Ignore file location

    Returns:
        Raw lines in file order, split on newlines only; a trailing carriage
        return is left for rule parsing to strip
    """
    if path is None:
        return []
    ignore_path = Path(path)
    if not ignore_path.is_file():
        logger.debug("Ignore file not found, no rules loaded: %s", ignore_path)
        return []
    try:
        text = ignore_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug("Cannot read ignore file %s, no rules loaded: %s", path, e)
        return []
    return text.split("\n")


class IgnoreMatcher:
    """Decides whether relative paths are excluded from a mirror run.

    The matcher is immutable after construction and safe to share between
    threads.

    Examples:
        >>> matcher = IgnoreMatcher(["foo", "!foo/keep.txt"])
        >>> matcher.is_ignored("foo/other.txt")
        True
        >>> matcher.is_ignored("foo/keep.txt")
        False
        >>> matcher.is_ignored("bar.txt")
        False
    """

    def __init__(
        self,
        rules: Iterable[str] = (),
        mode: Union[MatchMode, str] = MatchMode.SUBSTRING,
    ):
        """Initialize the matcher.

        Args:
            rules: Raw rule lines in evaluation order; blank and comment
                lines are skipped
            mode: How patterns are compared against paths
        """
        self.mode = MatchMode.parse(mode)
        parsed = [IgnoreRule.parse(line) for line in rules]
        factory = _MATCHER_FACTORIES[self.mode]
        compiled = []
        for rule in parsed:
            if rule is None:
                continue
            try:
                compiled.append((rule, factory(rule.pattern)))
            except ValueError as e:
                logger.warning("Skipping invalid ignore rule %r: %s", str(rule), e)
        self._compiled: tuple[tuple[IgnoreRule, PathMatcher], ...] = tuple(compiled)
        self._rules: tuple[IgnoreRule, ...] = tuple(rule for rule, _ in compiled)
        logger.debug(
            "Loaded %d ignore rule(s) in %s mode", len(self._rules), self.mode.value
        )

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path, None],
        mode: Union[MatchMode, str] = MatchMode.SUBSTRING,
    ) -> "IgnoreMatcher":
        """Build a matcher from an ignore file (no rules if it is unusable)."""
        return cls(load_ignore_lines(path), mode=mode)

    @classmethod
    def empty(cls) -> "IgnoreMatcher":
        """Build a matcher that ignores nothing."""
        return cls(())

    @property
    def rules(self) -> tuple[IgnoreRule, ...]:
        """Parsed rules in evaluation order."""
        return self._rules

    def __repr__(self) -> str:
        return f"IgnoreMatcher(rules={len(self._rules)}, mode={self.mode.value!r})"

    def is_ignored(self, path: str, is_dir: bool = False) -> bool:
        """Check whether a relative path is excluded.

        Args:
            path: Path relative to the tree root, with either separator
            is_dir: Whether the path names a directory (used by glob mode)

        Returns:
            The verdict of the last matching rule, False if none matches
        """
        normalized = normalize_separators(str(path))
        ignored = False
        for rule, matches in self._compiled:
            if matches(normalized, is_dir):
                ignored = not rule.negated
        return ignored
