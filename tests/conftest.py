"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from pathlib import Path

import pytest
from dirtygit.scanner.models import FileStatus, StatusCode


@pytest.fixture
def make_repo() -> Callable[[Path], Path]:
    """Create a directory that looks like a git working tree."""

    def _make(path: Path) -> Path:
        (path / ".git").mkdir(parents=True)
        return path

    return _make


@pytest.fixture
def modified() -> FileStatus:
    """Status of a tracked file modified in the worktree (`` M``)."""
    return FileStatus(staging=StatusCode.UNMODIFIED, worktree=StatusCode.MODIFIED)


@pytest.fixture
def untracked() -> FileStatus:
    """Status of an untracked file (``??``)."""
    return FileStatus(staging=StatusCode.UNTRACKED, worktree=StatusCode.UNTRACKED)


@pytest.fixture(autouse=True)
def isolated_config_home(
    tmp_path_factory: pytest.TempPathFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> Path:
    """Point XDG_CONFIG_HOME at an empty directory for every test."""
    config_home = tmp_path_factory.mktemp("xdg-config")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home
