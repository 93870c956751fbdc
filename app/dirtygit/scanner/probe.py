"""Per-repository status probes.

A probe takes the root of a working tree and reports the index and
worktree status of every changed, untracked or conflicted path in it.
"""

import logging
import os
import subprocess
from abc import ABC, abstractmethod

from dirtygit.scanner.errors import StatusError
from dirtygit.scanner.models import FileStatus, GitStatus, StatusCode
from dirtygit.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)


class StatusProbe(ABC):
    """Abstract base class for repository status probes.

    Implementations must take the repository path explicitly on every
    call and must not depend on the process working directory, since
    probes for different repositories run concurrently.

    Example:
        >>> probe = GitStatusProbe()
        >>> if probe.is_available():
        ...     for path, st in probe.probe("/home/me/src/proj").items():
        ...         print(st.code, path)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return a short name identifying this probe."""

    @abstractmethod
    def probe(self, path: str) -> GitStatus:
        """Determine the status of every reportable path in a repository.

        Args:
            path: Root of the working tree.

        Returns:
            Mapping of repository-relative path to its status.

        Raises:
            StatusError: If the path is not a readable working tree or
                the status output cannot be parsed.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this probe can run on the current system."""


def parse_porcelain(output: str, path: str) -> GitStatus:
    """Parse ``git status --porcelain`` (v1) output.

    Each line ends in ``\\n`` and has the form ``XY<sep><path>``: two status
    characters, one separator character, then the path from index 3 onward.
    Other line break characters are part of the path.

    Args:
        output: Raw command output.
        path: Repository the output belongs to, used in error messages.

    Returns:
        Mapping of repository-relative path to its status.

    Raises:
        StatusError: If a line is shorter than 4 characters or carries
            an unknown status code.
    """
    status: GitStatus = {}
    lines = output.split("\n")
    if lines[-1] == "":
        lines.pop()
    for line in lines:
        if len(line) < 4:
            raise StatusError(path, f"unable to parse status: {line!r}")
        try:
            staging = StatusCode(line[0])
            worktree = StatusCode(line[1])
        except ValueError:
            raise StatusError(path, f"unknown status code in line: {line!r}") from None
        status[line[3:]] = FileStatus(staging=staging, worktree=worktree)
    return status


class GitStatusProbe(StatusProbe):
    """Probe that runs the git executable.

    Args:
        git: Name or path of the git executable.
        timeout: Maximum seconds to wait for one ``git status`` call.
    """

    # Keep status from refreshing the index, which takes index.lock
    _ENV = {"GIT_OPTIONAL_LOCKS": "0"}

    def __init__(self, git: str = "git", timeout: float = 60.0) -> None:
        self._git = git
        self._timeout = timeout

    @property
    def name(self) -> str:
        """Return the probe name."""
        return "git"

    def is_available(self) -> bool:
        """Check if the git executable is on PATH."""
        return command_exists(self._git)

    def probe(self, path: str) -> GitStatus:
        """Run ``git status --porcelain`` inside ``path`` and parse it.

        Raises:
            StatusError: If git is missing, times out, exits non-zero,
                or produces unparseable output.
        """
        try:
            result = run_command(
                [self._git, "status", "--porcelain"],
                timeout=self._timeout,
                cwd=path,
                env={
                    **self._ENV,
                    "GIT_DIR": os.path.join(path, ".git"),
                    "GIT_WORK_TREE": path,
                },
            )
        except subprocess.TimeoutExpired:
            raise StatusError(path, f"git status timed out after {self._timeout}s") from None
        except OSError as e:
            raise StatusError(path, f"cannot run git: {e}") from e

        if not result.success:
            msg = result.stderr.strip() or f"git status exited with code {result.returncode}"
            raise StatusError(path, msg)

        return parse_porcelain(result.stdout, path)
