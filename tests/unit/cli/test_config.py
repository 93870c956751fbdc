"""Unit tests for config CLI commands.

Tests for dirtygit config path, show and init.
"""

import tomllib
from pathlib import Path

from dirtygit.cli.main import app
from dirtygit.core.config import load_config
from typer.testing import CliRunner

runner = CliRunner()


def _flat(output: str) -> str:
    """Collapse line wrapping done by Rich."""
    return " ".join(output.split())


class TestConfigPath:
    """Tests for dirtygit config path."""

    def test_default_path(self, isolated_config_home: Path) -> None:
        """The XDG location is printed."""
        result = runner.invoke(app, ["config", "path"])

        assert result.exit_code == 0
        assert str(isolated_config_home / "dirtygit" / "config.toml") in "".join(
            result.output.split("\n")
        )

    def test_explicit_path(self, tmp_path: Path) -> None:
        """--config overrides the printed location."""
        target = tmp_path / "custom.toml"

        result = runner.invoke(app, ["--config", str(target), "config", "path"])

        assert result.exit_code == 0
        assert str(target) in "".join(result.output.split("\n"))


class TestConfigInit:
    """Tests for dirtygit config init."""

    def test_creates_default_file(self, isolated_config_home: Path) -> None:
        """init writes a loadable default configuration."""
        result = runner.invoke(app, ["config", "init"])

        target = isolated_config_home / "dirtygit" / "config.toml"
        assert result.exit_code == 0, result.output
        assert "Config written to" in _flat(result.output)
        assert target.exists()
        assert load_config(target).include_roots

    def test_refuses_to_overwrite(self, tmp_path: Path) -> None:
        """An existing file is kept unless --force is given."""
        target = tmp_path / "config.toml"
        target.write_text("followsymlinks = true\n")

        result = runner.invoke(app, ["--config", str(target), "config", "init"])

        assert result.exit_code == 1
        assert "already exists" in _flat(result.output)
        assert target.read_text() == "followsymlinks = true\n"

    def test_force_overwrites(self, tmp_path: Path) -> None:
        """--force replaces an existing file."""
        target = tmp_path / "config.toml"
        target.write_text("followsymlinks = true\n")

        result = runner.invoke(app, ["--config", str(target), "config", "init", "--force"])

        assert result.exit_code == 0, result.output
        with open(target, "rb") as f:
            data = tomllib.load(f)
        assert data["followsymlinks"] is False
        assert "scandirs" in data


class TestConfigShow:
    """Tests for dirtygit config show."""

    def test_shows_defaults_without_file(self) -> None:
        """Without a config file the defaults are printed with a warning."""
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "showing defaults" in _flat(result.output)
        assert "[scandirs]" in result.output
        assert "node_modules" in result.output

    def test_shows_file_contents(self, tmp_path: Path) -> None:
        """The effective configuration from --config is printed as TOML."""
        target = tmp_path / "config.toml"
        target.write_text('followsymlinks = true\n[gitignore]\nfileglob = ["*.swp"]\n')

        result = runner.invoke(app, ["--config", str(target), "config", "show"])

        assert result.exit_code == 0, result.output
        assert "followsymlinks = true" in result.output
        assert '"*.swp"' in result.output

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        """A --config file that does not exist is an error."""
        result = runner.invoke(app, ["--config", str(tmp_path / "nope.toml"), "config", "show"])

        assert result.exit_code == 1
        assert "Config not found" in _flat(result.output)

    def test_invalid_file(self, tmp_path: Path) -> None:
        """A config with unknown keys is reported."""
        target = tmp_path / "config.toml"
        target.write_text("colour = true\n")

        result = runner.invoke(app, ["--config", str(target), "config", "show"])

        assert result.exit_code == 1
        assert "Invalid config content" in _flat(result.output)

    def test_no_subcommand_shows_help(self) -> None:
        """config without a subcommand prints usage."""
        result = runner.invoke(app, ["config"])
        assert "Usage" in result.output
