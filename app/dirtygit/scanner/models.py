"""Scan domain models.

This module defines the data structures produced by a scan run: the
per-file status codes reported by git, the per-repository status, and
the immutable state snapshot published by the scan coordinator.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class StatusCode(str, Enum):
    """Single-character git status code (porcelain v1).

    Attributes:
        UNMODIFIED: No change in this column.
        MODIFIED: Contents modified.
        TYPE_CHANGED: File type changed (e.g. file to symlink).
        ADDED: Newly added to the index.
        DELETED: Removed.
        RENAMED: Renamed.
        COPIED: Copied.
        UPDATED_BUT_UNMERGED: Merge conflict.
        UNTRACKED: Not tracked by git.
        IGNORED: Ignored by .gitignore.
    """

    UNMODIFIED = " "
    MODIFIED = "M"
    TYPE_CHANGED = "T"
    ADDED = "A"
    DELETED = "D"
    RENAMED = "R"
    COPIED = "C"
    UPDATED_BUT_UNMERGED = "U"
    UNTRACKED = "?"
    IGNORED = "!"


@dataclass(frozen=True, slots=True)
class FileStatus:
    """Index and worktree status of a single path.

    Attributes:
        staging: Status of the path in the index (first porcelain column).
        worktree: Status of the path in the working tree (second column).
    """

    staging: StatusCode
    worktree: StatusCode

    @property
    def code(self) -> str:
        """Return the two-character porcelain form, e.g. `` M``."""
        return f"{self.staging.value}{self.worktree.value}"

    @property
    def is_conflicted(self) -> bool:
        """Check if either column reports an unmerged path."""
        return StatusCode.UPDATED_BUT_UNMERGED in (self.staging, self.worktree) or (
            self.staging == self.worktree and self.staging in (StatusCode.ADDED, StatusCode.DELETED)
        )


# Relative path within a repository -> status of that path
GitStatus = dict[str, FileStatus]


@dataclass(frozen=True, slots=True)
class RepoStatus:
    """Status of one repository after exclusion filtering.

    Attributes:
        files: Mapping of repository-relative path to its status.
        scan_time: Seconds spent probing this repository.
    """

    files: GitStatus
    scan_time: float = 0.0

    @property
    def is_clean(self) -> bool:
        """Check if no path has a reportable status."""
        return not self.files


# Repository root -> status, only repositories with changes are present
ScanResult = dict[str, RepoStatus]


def _empty_result() -> Mapping[str, RepoStatus]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class ScanState:
    """Immutable snapshot of the coordinator's observable state.

    A new snapshot replaces the previous one on every transition, so a
    reader holding a reference never observes a partially updated state.

    Attributes:
        busy: True while a scan is walking, probing or aggregating.
        last_result: Result of the last successful scan (read-only).
        last_error: Terminal error of the last scan, None if it succeeded.
        scan_count: Number of scans that have finished (success or error).
        repos_found: Repositories discovered so far by the scan in flight.
        repos_probed: Repositories probed so far by the scan in flight.
        last_duration: Wall time of the last finished scan in seconds.
    """

    busy: bool = False
    last_result: Mapping[str, RepoStatus] = field(default_factory=_empty_result)
    last_error: Exception | None = None
    scan_count: int = 0
    repos_found: int = 0
    repos_probed: int = 0
    last_duration: float | None = None


def result_to_dict(result: Mapping[str, RepoStatus]) -> dict[str, Any]:
    """Convert a scan result to a dictionary for JSON serialization.

    Repositories and paths are sorted for stable output.

    Args:
        result: Scan result to convert.

    Returns:
        Mapping of repository path to its scan time and file codes.
    """
    return {
        repo: {
            "scan_time": round(status.scan_time, 6),
            "files": {path: status.files[path].code for path in sorted(status.files)},
        }
        for repo, status in sorted(result.items())
    }
