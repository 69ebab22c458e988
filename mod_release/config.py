"""Configuration for mod-release.

Settings come from ``mod-release.toml`` (top-level keys) or the
``[tool.mod-release]`` table of ``pyproject.toml``. Every setting has a
default, so a repository with neither file works out of the box. Paths
are relative to the repository root, which must be the working directory
(git resolves the manifest path against it when reading history).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from tomlkit.exceptions import TOMLKitError

from .commits import TYPE_TO_CATEGORY
from .exceptions import ConfigError
from .toml import get_tool_table, load_toml

CONFIG_FILE = "mod-release.toml"
TOOL_NAME = "mod-release"


class ReleaseConfig(BaseModel):
    """Release settings.

    Attributes:
        manifest_path: Tracked manifest holding name and version.
        dist_dir: Build output and staging directory.
        releases_dir: Directory receiving the mod zip.
        source_dir: Directory holding optional assets.
        asset_files: Optional files copied from source_dir into the bundle.
        asset_dirs: Optional directories copied from source_dir into the bundle.
        build_command: External build invocation; empty to skip building.
        remote: Remote that version commits and tags are pushed to.
        fallback_commits: When a series has no base commit, count work
            commits among this many most recent commits.
        default_factorio_version: Used when the manifest doesn't specify one.
        categories: Commit type → changelog category.
    """

    manifest_path: Path = Path("package.json")
    dist_dir: Path = Path("dist")
    releases_dir: Path = Path("releases")
    source_dir: Path = Path("src")
    asset_files: list[str] = Field(default_factory=lambda: ["thumbnail.png"])
    asset_dirs: list[str] = Field(
        default_factory=lambda: ["locale", "scenarios", "campaigns", "tutorials", "migrations"]
    )
    build_command: list[str] = Field(default_factory=lambda: ["pnpm", "run", "build:all"])
    remote: str = "origin"
    fallback_commits: int = Field(default=0, ge=0)
    default_factorio_version: str = "1.1"
    categories: dict[str, str] = Field(default_factory=lambda: dict(TYPE_TO_CATEGORY))


def _normalize_keys(raw: dict[str, Any]) -> dict[str, Any]:
    """Accept kebab-case keys (``manifest-path``) as well as snake_case."""
    return {key.replace("-", "_"): value for key, value in raw.items()}


def read_config_table(root: Path) -> dict[str, Any]:
    """Return the raw settings table for the project at ``root``."""
    config_file = root / CONFIG_FILE
    if config_file.exists():
        return load_toml(config_file).unwrap()

    pyproject = root / "pyproject.toml"
    if pyproject.exists():
        return get_tool_table(load_toml(pyproject), TOOL_NAME)
    return {}


def load_config(root: Path | None = None, **overrides: Any) -> ReleaseConfig:
    """Load configuration for the project at ``root`` (default: cwd).

    Keyword overrides whose value is not None take precedence over the file.

    Raises:
        ConfigError: If a config file can't be parsed or fails validation.
    """
    root = root or Path.cwd()
    try:
        raw = _normalize_keys(read_config_table(root))
    except TOMLKitError as e:
        raise ConfigError(f"Invalid TOML in configuration: {e}") from e

    raw.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ReleaseConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid mod-release configuration:\n{e}") from e
