"""Scan configuration model and TOML file I/O.

Configuration file layout::

    followsymlinks = false

    [scandirs]
    include = ["~/src"]
    exclude = ["~/src/vendor"]

    [gitignore]
    fileglob = ["*.swp"]
    dirglob = ["node_modules"]
"""

import os
import tomllib
from pathlib import Path
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dirtygit.core.paths import get_config_path


def normalize_root(path: str) -> str:
    """Expand ``~`` and make a scan root absolute.

    Args:
        path: Root as written in the configuration.

    Returns:
        Absolute, normalized path string.
    """
    return os.path.abspath(os.path.expanduser(path))


class ScanDirs(BaseModel):
    """Directories to traverse.

    Attributes:
        include: Roots to search for repositories.
        exclude: Directories whose subtrees are skipped (exact match).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)

    @field_validator("include", "exclude")
    @classmethod
    def normalize_paths(cls, v: list[str]) -> list[str]:
        """Expand and absolutize every configured path."""
        return [normalize_root(p) for p in v if p.strip()]


class GitIgnore(BaseModel):
    """Status paths to leave out of the report.

    Attributes:
        fileglob: Globs matched against file base names.
        dirglob: Globs matched against each directory segment.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    fileglob: list[str] = Field(default_factory=list)
    dirglob: list[str] = Field(default_factory=list)


class ScanConfig(BaseModel):
    """Validated scan configuration.

    Immutable; a scan run reads it without locking.

    Attributes:
        scandirs: Include and exclude roots.
        gitignore: File and directory globs for status filtering.
        follow_symlinks: Follow symbolic links while walking.
        probe_workers: Number of concurrent status probes.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    scandirs: ScanDirs = Field(default_factory=ScanDirs)
    gitignore: GitIgnore = Field(default_factory=GitIgnore)
    follow_symlinks: Annotated[
        bool,
        Field(alias="followsymlinks", description="Follow symbolic links while walking"),
    ] = False
    probe_workers: Annotated[
        int,
        Field(ge=1, le=64, description="Concurrent status probes (1-64)"),
    ] = 8

    @property
    def include_roots(self) -> list[str]:
        return self.scandirs.include

    @property
    def exclude_roots(self) -> list[str]:
        return self.scandirs.exclude

    @property
    def file_globs(self) -> list[str]:
        return self.gitignore.fileglob

    @property
    def dir_globs(self) -> list[str]:
        return self.gitignore.dirglob

    def with_overrides(
        self,
        *,
        include: list[str] | None = None,
        follow_symlinks: bool | None = None,
    ) -> "ScanConfig":
        """Return a copy with command-line overrides applied.

        Args:
            include: Replacement include roots, if given.
            follow_symlinks: Replacement symlink policy, if given.

        Returns:
            New validated ScanConfig.
        """
        data = self.model_dump()
        if include:
            data["scandirs"]["include"] = include
        if follow_symlinks is not None:
            data["follow_symlinks"] = follow_symlinks
        return ScanConfig.model_validate(data)


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file cannot be parsed."""


class ConfigValidationError(ConfigError):
    """Raised when the configuration content is invalid."""


def default_config() -> ScanConfig:
    """Create the configuration written by ``dirtygit config init``.

    Returns:
        ScanConfig scanning the home directory.
    """
    return ScanConfig(
        scandirs=ScanDirs(include=["~"]),
        gitignore=GitIgnore(dirglob=["node_modules", ".venv", "__pycache__"]),
    )


def load_config(path: Path | None = None) -> ScanConfig:
    """Load and validate a configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default path.

    Returns:
        Validated ScanConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return ScanConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid config content: {e}") from e


def config_to_dict(config: ScanConfig) -> dict[str, Any]:
    """Convert a ScanConfig to the file layout for TOML serialization.

    Args:
        config: The ScanConfig to convert.

    Returns:
        Dictionary ready for TOML serialization.
    """
    result: dict[str, Any] = {"followsymlinks": config.follow_symlinks}

    if config.probe_workers != 8:  # Only include if non-default
        result["probe_workers"] = config.probe_workers

    result["scandirs"] = {
        "include": list(config.include_roots),
        "exclude": list(config.exclude_roots),
    }
    result["gitignore"] = {
        "fileglob": list(config.file_globs),
        "dirglob": list(config.dir_globs),
    }
    return result


def save_config(config: ScanConfig, path: Path | None = None) -> Path:
    """Save a configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.

    Args:
        config: The ScanConfig object to save.
        path: Path to save the config. If None, uses the default path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    from tempfile import NamedTemporaryFile

    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path
