"""Unit tests for the git status probe."""

import shutil
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest
from dirtygit.scanner.errors import StatusError
from dirtygit.scanner.models import FileStatus, StatusCode
from dirtygit.scanner.probe import GitStatusProbe, parse_porcelain
from dirtygit.utils.shell import CommandResult

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


class TestParsePorcelain:
    """Tests for parse_porcelain."""

    def test_parses_lines(self) -> None:
        """Each line yields one path with both columns."""
        output = " M src/main.py\nA  new.txt\n?? scratch/\nUU conflict.c\n"

        status = parse_porcelain(output, "/repo")

        assert status == {
            "src/main.py": FileStatus(StatusCode.UNMODIFIED, StatusCode.MODIFIED),
            "new.txt": FileStatus(StatusCode.ADDED, StatusCode.UNMODIFIED),
            "scratch/": FileStatus(StatusCode.UNTRACKED, StatusCode.UNTRACKED),
            "conflict.c": FileStatus(
                StatusCode.UPDATED_BUT_UNMERGED, StatusCode.UPDATED_BUT_UNMERGED
            ),
        }

    def test_empty_output_is_clean(self) -> None:
        """No output means a clean repository."""
        assert parse_porcelain("", "/repo") == {}

    def test_path_taken_verbatim(self) -> None:
        """Everything from the fourth character on is the path."""
        status = parse_porcelain('R  old.txt -> new.txt\n?? "with space.txt"\n', "/repo")
        assert set(status) == {"old.txt -> new.txt", '"with space.txt"'}

    def test_splits_on_newline_only(self) -> None:
        """Unicode line separators inside a path do not end the line."""
        status = parse_porcelain("?? caf\u2028e.txt\n M ok\x0c.txt\n", "/repo")
        assert set(status) == {"caf\u2028e.txt", "ok\x0c.txt"}

    def test_output_without_trailing_newline(self) -> None:
        """The last line does not need a line break."""
        status = parse_porcelain(" M a.txt\n M b.txt", "/repo")
        assert set(status) == {"a.txt", "b.txt"}

    def test_short_line_raises(self) -> None:
        """A line shorter than four characters cannot be parsed."""
        with pytest.raises(StatusError, match="unable to parse status") as exc_info:
            parse_porcelain(" M\n", "/repo")
        assert exc_info.value.path == "/repo"

    def test_unknown_code_raises(self) -> None:
        """An unknown status character raises StatusError."""
        with pytest.raises(StatusError, match="unknown status code"):
            parse_porcelain("XY file.txt\n", "/repo")


class TestGitStatusProbe:
    """Tests for GitStatusProbe with a mocked git executable."""

    def test_name(self) -> None:
        """The probe is called git."""
        assert GitStatusProbe().name == "git"

    def test_is_available(self) -> None:
        """Availability follows the executable lookup."""
        with patch("dirtygit.scanner.probe.command_exists", return_value=False):
            assert GitStatusProbe().is_available() is False
        with patch("dirtygit.scanner.probe.command_exists", return_value=True):
            assert GitStatusProbe().is_available() is True

    def test_runs_status_in_repository(self) -> None:
        """git status runs with the repository as working directory."""
        result = CommandResult(stdout=" M a.txt\n", stderr="", returncode=0)
        with patch("dirtygit.scanner.probe.run_command", return_value=result) as mock_run:
            status = GitStatusProbe(timeout=5.0).probe("/repo")

        assert status == {"a.txt": FileStatus(StatusCode.UNMODIFIED, StatusCode.MODIFIED)}
        mock_run.assert_called_once_with(
            ["git", "status", "--porcelain"],
            timeout=5.0,
            cwd="/repo",
            env={
                "GIT_OPTIONAL_LOCKS": "0",
                "GIT_DIR": "/repo/.git",
                "GIT_WORK_TREE": "/repo",
            },
        )

    def test_nonzero_exit_raises(self) -> None:
        """A failing git status raises StatusError with stderr."""
        result = CommandResult(
            stdout="", stderr="fatal: not a git repository\n", returncode=128
        )
        with (
            patch("dirtygit.scanner.probe.run_command", return_value=result),
            pytest.raises(StatusError, match="not a git repository"),
        ):
            GitStatusProbe().probe("/repo")

    def test_nonzero_exit_without_stderr(self) -> None:
        """The exit code is reported when stderr is empty."""
        result = CommandResult(stdout="", stderr="", returncode=1)
        with (
            patch("dirtygit.scanner.probe.run_command", return_value=result),
            pytest.raises(StatusError, match="exited with code 1"),
        ):
            GitStatusProbe().probe("/repo")

    def test_timeout_raises(self) -> None:
        """A hung git status raises StatusError."""
        with (
            patch(
                "dirtygit.scanner.probe.run_command",
                side_effect=subprocess.TimeoutExpired(cmd="git", timeout=1),
            ),
            pytest.raises(StatusError, match="timed out"),
        ):
            GitStatusProbe(timeout=1).probe("/repo")

    def test_missing_directory_raises(self) -> None:
        """A path that cannot be entered raises StatusError."""
        with (
            patch(
                "dirtygit.scanner.probe.run_command",
                side_effect=FileNotFoundError("/gone"),
            ),
            pytest.raises(StatusError, match="cannot run git"),
        ):
            GitStatusProbe().probe("/gone")


@requires_git
class TestGitStatusProbeIntegration:
    """Tests against a real git repository."""

    @staticmethod
    def _git(repo: Path, *args: str) -> None:
        subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True)

    def test_reports_changes(self, tmp_path: Path) -> None:
        """Modified, staged and untracked files are reported."""
        repo = tmp_path / "proj"
        repo.mkdir()
        self._git(repo, "init", "-q")
        self._git(repo, "config", "user.email", "test@example.com")
        self._git(repo, "config", "user.name", "Test")
        (repo / "tracked.txt").write_text("one\n")
        self._git(repo, "add", "tracked.txt")
        self._git(repo, "commit", "-q", "-m", "init")

        (repo / "tracked.txt").write_text("two\n")
        (repo / "staged.txt").write_text("new\n")
        self._git(repo, "add", "staged.txt")
        (repo / "untracked.txt").write_text("?\n")

        status = GitStatusProbe().probe(str(repo))

        assert status["tracked.txt"].code == " M"
        assert status["staged.txt"].code == "A "
        assert status["untracked.txt"].code == "??"

    def test_clean_repository(self, tmp_path: Path) -> None:
        """A freshly initialized repository is clean."""
        repo = tmp_path / "empty"
        repo.mkdir()
        self._git(repo, "init", "-q")

        assert GitStatusProbe().probe(str(repo)) == {}

    def test_not_a_repository(self, tmp_path: Path) -> None:
        """A plain directory raises StatusError."""
        plain = tmp_path / "plain"
        plain.mkdir()

        with pytest.raises(StatusError):
            GitStatusProbe().probe(str(plain))

    def test_broken_repository_inside_another(self, tmp_path: Path) -> None:
        """An empty .git nested in a working tree is not resolved to the outer one."""
        outer = tmp_path / "outer"
        outer.mkdir()
        self._git(outer, "init", "-q")
        (outer / "dirty.txt").write_text("x\n")
        inner = outer / "vendor" / "inner"
        (inner / ".git").mkdir(parents=True)

        assert "dirty.txt" in GitStatusProbe().probe(str(outer))
        with pytest.raises(StatusError) as exc_info:
            GitStatusProbe().probe(str(inner))
        assert exc_info.value.path == str(inner)
