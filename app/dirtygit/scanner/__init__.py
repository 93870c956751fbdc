"""Repository scanning pipeline.

This module exports the walker, status probe, exclusion filter and the
coordinator that serializes scan runs.
"""

from dirtygit.scanner.coordinator import ScanCoordinator
from dirtygit.scanner.errors import ScanCancelledError, ScanError, StatusError, WalkError
from dirtygit.scanner.excluder import Excluder
from dirtygit.scanner.models import (
    FileStatus,
    GitStatus,
    RepoStatus,
    ScanResult,
    ScanState,
    StatusCode,
)
from dirtygit.scanner.probe import GitStatusProbe, StatusProbe, parse_porcelain
from dirtygit.scanner.scan import scan
from dirtygit.scanner.walker import walk

__all__ = [
    "Excluder",
    "FileStatus",
    "GitStatus",
    "GitStatusProbe",
    "RepoStatus",
    "ScanCancelledError",
    "ScanCoordinator",
    "ScanError",
    "ScanResult",
    "ScanState",
    "StatusCode",
    "StatusError",
    "StatusProbe",
    "WalkError",
    "parse_porcelain",
    "scan",
    "walk",
]
