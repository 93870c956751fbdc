"""Exclusion rules for scan results and traversal roots.

Status paths are matched per segment against shell-style globs: the
base name against the file globs, every directory segment against the
directory globs. Traversal roots are matched by exact string comparison.
"""

import fnmatch
import logging
import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from dirtygit.scanner.models import GitStatus

if TYPE_CHECKING:
    from dirtygit.core.config import ScanConfig

logger = logging.getLogger(__name__)


def _has_unterminated_class(pattern: str) -> bool:
    """Check for a ``[`` character class without a closing ``]``."""
    i = 0
    n = len(pattern)
    while i < n:
        if pattern[i] == "[":
            j = i + 1
            if j < n and pattern[j] == "!":
                j += 1
            # A leading ']' is part of the class
            if j < n and pattern[j] == "]":
                j += 1
            close = pattern.find("]", j)
            if close == -1:
                return True
            i = close
        i += 1
    return False


def compile_globs(patterns: Iterable[str]) -> list[re.Pattern[str]]:
    """Compile shell-style glob patterns for case-sensitive matching.

    Malformed patterns (empty, or with an unterminated character class)
    are dropped with a warning so they never match.

    Args:
        patterns: Glob patterns using ``*``, ``?`` and ``[...]``.

    Returns:
        Compiled regular expressions, one per valid pattern.
    """
    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        if not pattern or _has_unterminated_class(pattern):
            logger.warning("Ignoring malformed glob pattern: %r", pattern)
            continue
        try:
            compiled.append(re.compile(fnmatch.translate(pattern)))
        except re.error as e:
            logger.warning("Ignoring malformed glob pattern %r: %s", pattern, e)
    return compiled


class Excluder:
    """Decides which status paths and traversal roots are excluded.

    Args:
        file_globs: Patterns matched against the base name of a status path.
        dir_globs: Patterns matched against each directory segment.
        exclude_roots: Paths whose subtrees are never traversed.

    Example:
        >>> ex = Excluder(file_globs=["*.swp"], dir_globs=["node_modules"])
        >>> ex.is_excluded("web/node_modules/x/index.js")
        True
    """

    def __init__(
        self,
        file_globs: Iterable[str] = (),
        dir_globs: Iterable[str] = (),
        exclude_roots: Iterable[str] = (),
    ) -> None:
        self._files = compile_globs(file_globs)
        self._dirs = compile_globs(dir_globs)
        self._roots = frozenset(exclude_roots)

    @classmethod
    def from_config(cls, config: "ScanConfig") -> "Excluder":
        """Build an excluder from a scan configuration."""
        return cls(
            file_globs=config.file_globs,
            dir_globs=config.dir_globs,
            exclude_roots=config.exclude_roots,
        )

    def is_excluded(self, path: str) -> bool:
        """Check if a repository-relative status path is excluded.

        Args:
            path: Path as reported by git, ``/`` separated.

        Returns:
            True if the base name matches a file glob or any directory
            segment matches a directory glob.
        """
        dirname, _, base = path.rpartition("/")

        for pattern in self._files:
            if pattern.match(base):
                return True

        if not self._dirs or not dirname:
            return False

        # Quoted porcelain paths keep their quotes, so the first segment
        # of '"dir/a b"' is '"dir'
        for segment in dirname.split("/"):
            if not segment:
                continue
            for pattern in self._dirs:
                if pattern.match(segment):
                    return True
        return False

    def filter_status(self, status: GitStatus) -> GitStatus:
        """Return a copy of ``status`` without excluded paths.

        The input mapping is not modified.
        """
        return {path: st for path, st in status.items() if not self.is_excluded(path)}

    def is_excluded_root(self, path: str) -> bool:
        """Check if ``path`` exactly matches a configured exclude root."""
        return path in self._roots
